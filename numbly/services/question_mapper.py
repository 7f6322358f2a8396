"""
Conversion between generated questions and question bank rows
"""
from typing import Any, Dict

from numbly.errors import ValidationError
from numbly.models import QuizQuestion
from numbly.schemas.quiz import (
    DifficultyLevel,
    GeneratedQuestion,
    MathTopic,
    QuestionDifficulty,
    QuizOption,
)

OPTION_IDS = ("A", "B", "C", "D")

TO_BANK_DIFFICULTY = {
    DifficultyLevel.EASY: QuestionDifficulty.BEGINNER,
    DifficultyLevel.MEDIUM: QuestionDifficulty.INTERMEDIATE,
    DifficultyLevel.HARD: QuestionDifficulty.ADVANCED,
}
FROM_BANK_DIFFICULTY = {bank: level for level, bank in TO_BANK_DIFFICULTY.items()}


def to_question_fields(generated: GeneratedQuestion) -> Dict[str, Any]:
    """Column values for persisting a generated question"""

    correct = [i for i, opt in enumerate(generated.options) if opt.is_correct]
    if len(generated.options) != len(OPTION_IDS) or len(correct) != 1:
        raise ValidationError(
            "Generated question must have 4 options with exactly one correct",
            code="INVALID_GENERATED_QUESTION"
        )

    return {
        "question": generated.question,
        "options": [opt.text for opt in generated.options],
        "correct_answer": correct[0],
        "explanation": generated.correct_answer_explanation,
        "topic": MathTopic(generated.topic).value,
        "difficulty": TO_BANK_DIFFICULTY[DifficultyLevel(generated.difficulty)].value,
    }


def to_quiz_question(generated: GeneratedQuestion) -> QuizQuestion:
    return QuizQuestion(**to_question_fields(generated))


def to_generated_question(question: QuizQuestion) -> GeneratedQuestion:
    """Rebuild the provider-side shape from a question bank row"""

    try:
        topic = MathTopic(question.topic)
        difficulty = FROM_BANK_DIFFICULTY[QuestionDifficulty(question.difficulty)]
    except (ValueError, KeyError):
        raise ValidationError(
            f"Question {question.id} has no generated-question equivalent",
            code="UNMAPPABLE_QUESTION"
        )

    return GeneratedQuestion(
        id=str(question.id),
        question=question.question,
        topic=topic,
        difficulty=difficulty,
        options=[
            QuizOption(id=option_id, text=text, is_correct=(i == question.correct_answer))
            for i, (option_id, text) in enumerate(zip(OPTION_IDS, question.options))
        ],
        correct_answer_explanation=question.explanation,
    )
