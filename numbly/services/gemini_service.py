"""
Gemini question provider using JSON-in-prompt parsing
"""
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
import logging
from typing import List, Optional

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


class GeminiQuestionGenerator(QuestionGenerator):
    """Service for Gemini question generation"""

    name = "gemini"

    def __init__(self, model=None, timeout: Optional[float] = None):
        self.timeout = timeout or settings.GENERATION_TIMEOUT
        if model is None:
            if not settings.GEMINI_API_KEY:
                raise AuthInvalidError("GEMINI_API_KEY is not configured")
            genai.configure(api_key=settings.GEMINI_API_KEY)
            model = genai.GenerativeModel(settings.GEMINI_MODEL, system_instruction=SYSTEM_PROMPT)
        self.model = model

    def generate(
        self,
        topic: MathTopic,
        difficulty: DifficultyLevel,
        count: int
    ) -> List[GeneratedQuestion]:
        """
        Generate quiz questions from a free-form JSON reply

        Args:
            topic: Math topic
            difficulty: easy/medium/hard
            count: Number of questions

        Returns:
            Exactly `count` validated questions
        """
        prompt = build_quiz_prompt(topic, difficulty, count) + (
            "\n\nReturn ONLY valid JSON (no markdown, no preamble)."
        )

        try:
            response = self.model.generate_content(
                prompt,
                generation_config={"temperature": 0.8, "max_output_tokens": 4000},
                request_options={"timeout": self.timeout},
            )
            text = response.text
        except google_exceptions.ResourceExhausted as e:
            logger.warning(f"Gemini rate limit hit: {str(e)}")
            raise RateLimitedError("Rate limit exceeded. Please try again in a few moments.")
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            logger.error(f"Gemini rejected credentials: {str(e)}")
            raise AuthInvalidError("Invalid Gemini API key. Please check your configuration.")
        except google_exceptions.DeadlineExceeded as e:
            logger.error(f"Gemini request timed out: {str(e)}")
            raise ServiceError("Gemini request timed out. Please try again later.")
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Failed to generate quiz: {str(e)}")
            raise ServiceError("Gemini service error. Please try again later.")
        except ValueError as e:
            # response.text raises when the candidate was blocked or empty
            logger.error(f"Gemini returned no usable text: {str(e)}")
            raise ServiceError("No response content from Gemini")

        questions = parse_questions(extract_json(text), topic, difficulty, count)
        logger.info(f"Gemini generated {len(questions)} {DifficultyLevel(difficulty).value} questions on {MathTopic(topic).value}")
        return questions
