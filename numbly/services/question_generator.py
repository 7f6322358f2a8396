"""
Question generation interface shared by the LLM providers
"""
import json
import logging
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from numbly.config import settings
from numbly.errors import ServiceError
from numbly.schemas.quiz import DifficultyLevel, GeneratedQuestion, MathTopic

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert math teacher creating educational quiz questions for "
    "students learning mathematics. Always respond with valid JSON."
)

DIFFICULTY_DESCRIPTORS = {
    DifficultyLevel.EASY: "Basic concepts, simple calculations, single-digit or small numbers (suitable for elementary level)",
    DifficultyLevel.MEDIUM: "Multi-step problems, two-digit numbers, application of concepts (suitable for middle school level)",
    DifficultyLevel.HARD: "Complex problems, large numbers, word problems requiring critical thinking (suitable for advanced level)",
}

TOPIC_DESCRIPTIONS = {
    MathTopic.ADDITION: "Adding numbers together, sum calculations, combining quantities",
    MathTopic.SUBTRACTION: "Taking away numbers, difference calculations, comparing quantities",
    MathTopic.MULTIPLICATION: "Repeated addition, product calculations, scaling quantities",
    MathTopic.DIVISION: "Splitting into equal parts, quotient calculations, sharing quantities",
    MathTopic.FRACTIONS: "Parts of a whole, numerator and denominator, fraction operations",
    MathTopic.DECIMALS: "Decimal numbers, place value, decimal operations",
    MathTopic.MIXED: "Combination of addition, subtraction, multiplication, and division",
}


def build_quiz_prompt(topic: MathTopic, difficulty: DifficultyLevel, count: int) -> str:
    """Create the structured prompt for question generation"""

    topic = MathTopic(topic)
    difficulty = DifficultyLevel(difficulty)

    return f"""Generate exactly {count} unique multiple-choice math quiz questions on {topic.value}.

Topic focus: {TOPIC_DESCRIPTIONS[topic]}
Difficulty level: {DIFFICULTY_DESCRIPTORS[difficulty]}

Requirements:
- Each question must have exactly 4 options (A, B, C, D)
- Only ONE option should be correct
- All incorrect options should be plausible (common mistakes students make)
- Questions should be clear and unambiguous
- Include step-by-step explanations that help students understand the concept
- Use whole numbers for answers to keep it simple
- Make questions engaging and appropriate for the difficulty level
- For word problems, use relatable scenarios (school, sports, shopping, etc.)
- Vary the question format (direct calculation, word problems, comparison)

Return a JSON object with this exact structure:
{{
  "questions": [
    {{
      "id": "unique-id",
      "question": "Question text",
      "topic": "{topic.value}",
      "difficulty": "{difficulty.value}",
      "options": [
        {{ "id": "A", "text": "Answer A", "isCorrect": false }},
        {{ "id": "B", "text": "Answer B", "isCorrect": true }},
        {{ "id": "C", "text": "Answer C", "isCorrect": false }},
        {{ "id": "D", "text": "Answer D", "isCorrect": false }}
      ],
      "correctAnswerExplanation": "Step-by-step explanation"
    }}
  ]
}}"""


def extract_json(text: str) -> Dict[str, Any]:
    """Parse a JSON object out of an LLM reply, tolerating code fences and stray prose"""

    text = (text or "").strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if fence_match:
        try:
            return json.loads(fence_match.group(1).strip())
        except json.JSONDecodeError:
            pass

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace != -1 and last_brace != -1:
        try:
            return json.loads(text[first_brace:last_brace + 1])
        except json.JSONDecodeError:
            pass

    logger.error(f"Response text: {text[:500]}")
    raise ServiceError("Could not parse questions from provider response")


def parse_questions(
    payload: Any,
    topic: MathTopic,
    difficulty: DifficultyLevel,
    count: int
) -> List[GeneratedQuestion]:
    """
    Validate a provider payload into exactly `count` generated questions

    Topic and difficulty are taken from the request rather than trusted from
    the model output.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
        raise ServiceError("Invalid response format from question provider")

    raw_questions = payload["questions"]
    if len(raw_questions) != count:
        raise ServiceError(f"Expected {count} questions, got {len(raw_questions)}")

    questions = []
    for i, raw in enumerate(raw_questions):
        if not isinstance(raw, dict):
            raise ServiceError(f"Question {i + 1} is not an object")
        try:
            questions.append(GeneratedQuestion.model_validate({
                **raw,
                "id": str(raw.get("id") or f"q{i + 1}"),
                "topic": MathTopic(topic).value,
                "difficulty": DifficultyLevel(difficulty).value,
            }))
        except PydanticValidationError as e:
            raise ServiceError(f"Question {i + 1} is malformed: {e.errors()[0]['msg']}")

    return questions


class QuestionGenerator(ABC):
    """
    A source of freshly generated quiz questions

    Implementations return exactly `count` questions, each with 4 options and
    one correct option, or raise RateLimitedError, AuthInvalidError or
    ServiceError.
    """

    name = "base"

    @abstractmethod
    def generate(
        self,
        topic: MathTopic,
        difficulty: DifficultyLevel,
        count: int
    ) -> List[GeneratedQuestion]:
        raise NotImplementedError


@lru_cache
def _build_generator(provider: str) -> QuestionGenerator:
    if provider == "openai":
        from numbly.services.openai_service import OpenAIQuestionGenerator
        return OpenAIQuestionGenerator()
    if provider == "gemini":
        from numbly.services.gemini_service import GeminiQuestionGenerator
        return GeminiQuestionGenerator()
    raise ServiceError(f"Unknown quiz provider: {provider}", code="PROVIDER_CONFIG_ERROR")


def get_question_generator() -> QuestionGenerator:
    """FastAPI dependency returning the configured question provider"""
    return _build_generator(settings.QUIZ_PROVIDER.lower())
