"""
Progressive quiz composition across difficulty tiers
"""
import logging
import math
from typing import Dict, List

from numbly.schemas.quiz import DifficultyLevel, GeneratedQuestion, MathTopic
from numbly.services.question_generator import QuestionGenerator

logger = logging.getLogger(__name__)

# Tier order is the order questions appear in the composed quiz
TIER_ORDER = (DifficultyLevel.EASY, DifficultyLevel.MEDIUM, DifficultyLevel.HARD)


def tier_distribution(total_questions: int) -> Dict[DifficultyLevel, int]:
    """
    Split a question count 30/40/30 over easy, medium and hard

    Easy and medium round up, hard rounds down, so the tiers can add up to
    more than `total_questions` (7 -> 3 + 3 + 2). The counts are not
    normalized.
    """
    return {
        DifficultyLevel.EASY: math.ceil(total_questions * 0.3),
        DifficultyLevel.MEDIUM: math.ceil(total_questions * 0.4),
        DifficultyLevel.HARD: math.floor(total_questions * 0.3),
    }


def compose_progressive_quiz(
    generator: QuestionGenerator,
    topic: MathTopic,
    total_questions: int = 10
) -> List[GeneratedQuestion]:
    """
    Generate a quiz that runs from easy to hard

    Tiers are requested one at a time. Provider errors propagate unchanged;
    a failure in any tier discards the questions already generated.
    """
    distribution = tier_distribution(total_questions)
    all_questions: List[GeneratedQuestion] = []

    for difficulty in TIER_ORDER:
        count = distribution[difficulty]
        if count > 0:
            logger.info(f"Requesting {count} {difficulty.value} questions on {MathTopic(topic).value} from {generator.name}")
            all_questions.extend(generator.generate(topic, difficulty, count))

    return all_questions
