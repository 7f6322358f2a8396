"""
Pydantic schemas for lessons, lesson progress and achievements
"""
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Dict, Optional

from numbly.schemas.quiz import CamelModel, QuestionDifficulty


def _clean_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _clean_optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


# --- Lessons ---

class LessonCreate(CamelModel):
    """Schema for adding a lesson to the catalogue"""
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    duration: str = Field(..., max_length=50, description="Estimated duration, e.g. '15 min'")
    difficulty: QuestionDifficulty
    order_index: int = Field(..., strict=True, description="Position in the catalogue")

    @field_validator("title", "duration")
    @classmethod
    def strip_text(cls, value):
        return _clean_text(value)

    @field_validator("description")
    @classmethod
    def strip_description(cls, value):
        return _clean_optional_text(value)


class LessonUpdate(CamelModel):
    """Partial update - only provided fields are changed; description may be cleared"""
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=50)
    difficulty: Optional[QuestionDifficulty] = None
    order_index: Optional[int] = Field(None, strict=True)

    @field_validator("title", "duration")
    @classmethod
    def strip_text(cls, value):
        if value is None:
            raise ValueError("must not be empty")
        return _clean_text(value)

    @field_validator("difficulty", "order_index")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("description")
    @classmethod
    def strip_description(cls, value):
        return _clean_optional_text(value)


class LessonResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    duration: str
    difficulty: str
    order_index: int
    created_at: datetime


class LessonDeleted(BaseModel):
    message: str
    lesson: LessonResponse


# --- Progress ---

class ProgressUpdate(CamelModel):
    """Schema for recording lesson progress; the user comes from the session"""
    lesson_id: int = Field(..., gt=0)
    progress: int = Field(0, ge=0, le=100, description="Percent of the lesson done")
    completed: bool = False


class ProgressResponse(CamelModel):
    id: int
    user_id: str
    lesson_id: int
    progress: int
    completed: bool
    last_accessed: datetime
    created_at: datetime
    updated_at: datetime


class ProgressLesson(CamelModel):
    """Lesson as nested under a progress record"""
    id: int
    title: str
    description: Optional[str] = None
    duration: str
    difficulty: str
    order_index: int


class ProgressWithLesson(ProgressResponse):
    lesson: ProgressLesson


class LastAccessedLesson(LessonResponse):
    """The most recently opened lesson with the user's progress on it"""
    progress: int
    completed: bool
    last_accessed: datetime


class DifficultyProgress(CamelModel):
    total: int
    completed: int
    in_progress: int
    not_started: int
    completion_rate: int


class ProgressStats(CamelModel):
    """Lesson completion overview for one user"""
    total_lessons: int
    completed_lessons: int
    in_progress_lessons: int
    not_started_lessons: int
    average_progress: int
    overall_completion_rate: int
    last_accessed_lesson: Optional[LastAccessedLesson] = None
    progress_by_difficulty: Dict[str, DifficultyProgress] = Field(default_factory=dict)


# --- Achievements ---

class AchievementCreate(CamelModel):
    """Schema for awarding an achievement to the signed-in user"""
    achievement_type: str = Field(..., max_length=50)
    achievement_name: str = Field(..., max_length=255)
    achievement_description: str

    @field_validator("achievement_type", "achievement_name", "achievement_description")
    @classmethod
    def strip_text(cls, value):
        return _clean_text(value)


class AchievementResponse(CamelModel):
    id: int
    user_id: str
    achievement_type: str
    achievement_name: str
    achievement_description: str
    earned_at: datetime
