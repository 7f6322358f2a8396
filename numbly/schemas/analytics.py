"""
Pydantic schemas for quiz statistics
"""
from datetime import datetime
from pydantic import Field
from typing import List, Optional

from numbly.schemas.quiz import CamelModel


class TopicStats(CamelModel):
    topic: str
    attempts: int
    correct: int
    accuracy: float


class DifficultyStats(CamelModel):
    difficulty: str
    attempts: int
    correct: int
    accuracy: float


class RecentAttempt(CamelModel):
    """Attempt flattened together with its question fields"""
    id: int
    quiz_question_id: int
    question: Optional[str] = None
    options: Optional[List[str]] = None
    user_answer: int
    correct_answer: Optional[int] = None
    is_correct: bool
    time_taken: int
    explanation: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None
    created_at: datetime


class StatsSummary(CamelModel):
    """Aggregate performance for one user"""
    total_attempts: int
    correct_answers: int
    incorrect_answers: int
    accuracy_rate: float
    average_time_taken: float
    total_time_practicing: int
    stats_by_topic: List[TopicStats] = Field(default_factory=list)
    stats_by_difficulty: List[DifficultyStats] = Field(default_factory=list)
    recent_attempts: List[RecentAttempt] = Field(default_factory=list)
    perfect_score_streak: int
