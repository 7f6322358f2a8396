"""
OpenAI question provider using the chat completions JSON mode
"""
import logging
from typing import List, Optional

import httpx

from numbly.config import settings
from numbly.errors import AuthInvalidError, RateLimitedError, ServiceError
from numbly.schemas.quiz import DifficultyLevel, GeneratedQuestion, MathTopic
from numbly.services.question_generator import (
    SYSTEM_PROMPT,
    QuestionGenerator,
    build_quiz_prompt,
    extract_json,
    parse_questions,
)

logger = logging.getLogger(__name__)


class OpenAIQuestionGenerator(QuestionGenerator):
    """Wrapper around the OpenAI chat completions API"""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self.base_url = (base_url or settings.OPENAI_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GENERATION_TIMEOUT
        self.transport = transport

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def generate(
        self,
        topic: MathTopic,
        difficulty: DifficultyLevel,
        count: int
    ) -> List[GeneratedQuestion]:
        """
        Generate quiz questions with structured JSON output

        Args:
            topic: Math topic
            difficulty: easy/medium/hard
            count: Number of questions

        Returns:
            Exactly `count` validated questions
        """
        if not self.api_key:
            raise AuthInvalidError("OPENAI_API_KEY is not configured")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_quiz_prompt(topic, difficulty, count)},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0.8,
            "max_tokens": 4000,
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self._headers(),
                    json=payload,
                )
        except httpx.TimeoutException as e:
            logger.error(f"OpenAI request timed out: {str(e)}")
            raise ServiceError("OpenAI request timed out. Please try again later.")
        except httpx.HTTPError as e:
            logger.error(f"OpenAI request failed: {str(e)}")
            raise ServiceError("OpenAI service error. Please try again later.")

        if resp.status_code == 429:
            raise RateLimitedError("Rate limit exceeded. Please try again in a few moments.")
        if resp.status_code in (401, 403):
            raise AuthInvalidError("Invalid OpenAI API key. Please check your configuration.")
        if resp.status_code >= 400:
            logger.error(f"OpenAI returned {resp.status_code}: {resp.text[:500]}")
            raise ServiceError("OpenAI service error. Please try again later.")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise ServiceError("Invalid response format from OpenAI")
        if not content:
            raise ServiceError("No response content from OpenAI")

        questions = parse_questions(extract_json(content), topic, difficulty, count)
        logger.info(f"OpenAI generated {len(questions)} {DifficultyLevel(difficulty).value} questions on {MathTopic(topic).value}")
        return questions
