"""
Pydantic schemas for quiz questions and AI quiz generation
"""
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional

from numbly.config import settings


class MathTopic(str, Enum):
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    MULTIPLICATION = "multiplication"
    DIVISION = "division"
    FRACTIONS = "fractions"
    DECIMALS = "decimals"
    MIXED = "mixed"


class DifficultyLevel(str, Enum):
    """Difficulty vocabulary used by the generation providers"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionDifficulty(str, Enum):
    """Difficulty vocabulary used by the persisted question bank"""
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON while keeping snake_case attributes"""
    
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def _clean_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _clean_options(options: List[str]) -> List[str]:
    if not all(opt.strip() for opt in options):
        raise ValueError("all options must be non-empty strings")
    return options


# --- Question bank ---

class QuizQuestionCreate(CamelModel):
    """Schema for adding a question to the bank"""
    question: str
    options: List[str] = Field(..., min_length=4, max_length=4, description="Exactly 4 answer options")
    correct_answer: int = Field(..., ge=0, le=3, strict=True, description="Index into options")
    explanation: str
    topic: str = Field(..., max_length=50)
    difficulty: QuestionDifficulty

    @field_validator("question", "explanation", "topic")
    @classmethod
    def strip_text(cls, value):
        return _clean_text(value)

    @field_validator("options")
    @classmethod
    def check_options(cls, value):
        return _clean_options(value)


class QuizQuestionUpdate(CamelModel):
    """Partial update - only provided fields are changed"""
    question: Optional[str] = None
    options: Optional[List[str]] = Field(None, min_length=4, max_length=4)
    correct_answer: Optional[int] = Field(None, ge=0, le=3, strict=True)
    explanation: Optional[str] = None
    topic: Optional[str] = Field(None, max_length=50)
    difficulty: Optional[QuestionDifficulty] = None
    
    @field_validator("question", "explanation", "topic")
    @classmethod
    def strip_text(cls, value):
        return _clean_text(value) if value is not None else value
    
    @field_validator("options")
    @classmethod
    def check_options(cls, value):
        return _clean_options(value) if value is not None else value


class QuizQuestionResponse(CamelModel):
    id: int
    question: str
    options: List[str]
    correct_answer: int
    explanation: str
    topic: str
    difficulty: str
    created_at: datetime


class QuizQuestionDeleted(BaseModel):
    message: str
    deleted: QuizQuestionResponse


# --- AI generation ---

class QuizOption(CamelModel):
    id: str
    text: str
    is_correct: bool


class GeneratedQuestion(CamelModel):
    """A question produced by a generation provider; not persisted by itself"""
    id: str
    question: str
    topic: MathTopic
    difficulty: DifficultyLevel
    options: List[QuizOption]
    correct_answer_explanation: str
    
    @field_validator("options")
    @classmethod
    def exactly_one_correct(cls, options):
        if len(options) != 4:
            raise ValueError(f"expected 4 options, got {len(options)}")
        correct = sum(1 for opt in options if opt.is_correct)
        if correct != 1:
            raise ValueError(f"expected exactly 1 correct option, got {correct}")
        return options


class QuizGenerateRequest(CamelModel):
    """Request schema for quiz generation"""
    topic: MathTopic
    difficulty: Optional[DifficultyLevel] = None
    count: int = Field(
        settings.DEFAULT_QUIZ_QUESTIONS,
        ge=1,
        le=settings.MAX_QUIZ_QUESTIONS,
        description="Number of questions"
    )
    progressive: bool = Field(False, description="Spread questions over easy, medium and hard")
    save: bool = Field(False, description="Also add the generated questions to the question bank")


class QuizGenerateResponse(CamelModel):
    questions: List[GeneratedQuestion]
    generated_at: datetime
