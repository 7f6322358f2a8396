"""
Pydantic schemas for quiz attempt submission and history
"""
from datetime import datetime
from pydantic import Field
from typing import List, Optional

from numbly.schemas.quiz import CamelModel


class QuizAttemptCreate(CamelModel):
    """Schema for recording an answer; the user comes from the session"""
    quiz_question_id: int
    user_answer: int = Field(..., ge=0, le=3, description="Index of the chosen option")
    time_taken: int = Field(..., ge=0, description="Seconds spent on the question")


class QuizAttemptResponse(CamelModel):
    id: int
    user_id: str
    quiz_question_id: int
    user_answer: int
    is_correct: bool
    time_taken: int
    created_at: datetime


class AttemptQuestion(CamelModel):
    """Question as nested under an attempt; null when the question row is gone"""
    id: Optional[int] = None
    question: Optional[str] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[int] = None
    explanation: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None


class QuizAttemptWithQuestion(QuizAttemptResponse):
    question: AttemptQuestion
