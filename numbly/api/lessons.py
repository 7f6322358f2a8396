"""
Lesson catalogue API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional, Union
import logging

from numbly.database import get_db
from numbly.errors import NotFoundError, ValidationError
from numbly.models import Lesson
from numbly.schemas.lesson import LessonCreate, LessonDeleted, LessonResponse, LessonUpdate
from numbly.schemas.quiz import QuestionDifficulty

router = APIRouter(prefix="/api/lessons", tags=["lessons"])
logger = logging.getLogger(__name__)


def _parse_id(id: Optional[str]) -> int:
    try:
        return int(id)
    except (TypeError, ValueError):
        raise ValidationError("Valid ID is required", code="INVALID_ID")


def _get_lesson_or_404(db: Session, lesson_id: int) -> Lesson:
    lesson = db.query(Lesson).filter(Lesson.id == lesson_id).first()
    if not lesson:
        raise NotFoundError("Lesson not found", code="LESSON_NOT_FOUND")
    return lesson


@router.get("", response_model=Union[LessonResponse, List[LessonResponse]])
async def list_lessons(
    id: Optional[str] = None,
    limit: int = Query(10, ge=1),
    offset: int = Query(0, ge=0),
    search: Optional[str] = None,
    difficulty: Optional[QuestionDifficulty] = None,
    db: Session = Depends(get_db)
):
    """
    Fetch one lesson by id, or list lessons in catalogue order

    - Pagination via limit (max 100) and offset
    - search matches title or description
    """

    if id is not None:
        return _get_lesson_or_404(db, _parse_id(id))

    query = db.query(Lesson)

    if search:
        query = query.filter(or_(
            Lesson.title.contains(search, autoescape=True),
            Lesson.description.contains(search, autoescape=True)
        ))
    if difficulty:
        query = query.filter(Lesson.difficulty == difficulty.value)

    return query.order_by(Lesson.order_index, Lesson.id).limit(min(limit, 100)).offset(offset).all()


@router.post("", response_model=LessonResponse, status_code=201)
async def create_lesson(
    payload: LessonCreate,
    db: Session = Depends(get_db)
):
    """Add a lesson to the catalogue"""

    lesson = Lesson(
        title=payload.title,
        description=payload.description,
        duration=payload.duration,
        difficulty=payload.difficulty.value,
        order_index=payload.order_index,
    )

    db.add(lesson)
    db.commit()
    db.refresh(lesson)

    logger.info(f"Lesson created: {lesson.id}")
    return lesson


@router.put("", response_model=LessonResponse)
async def update_lesson(
    payload: LessonUpdate,
    id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Update the provided fields of a lesson"""

    lesson = _get_lesson_or_404(db, _parse_id(id))

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        return lesson

    if "difficulty" in updates:
        updates["difficulty"] = updates["difficulty"].value
    for field, value in updates.items():
        setattr(lesson, field, value)

    db.commit()
    db.refresh(lesson)

    logger.info(f"Lesson updated: {lesson.id} ({', '.join(updates)})")
    return lesson


@router.delete("", response_model=LessonDeleted)
async def delete_lesson(
    id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Delete a lesson; progress on it is removed by cascade"""

    lesson = _get_lesson_or_404(db, _parse_id(id))
    deleted = LessonResponse.model_validate(lesson)

    db.delete(lesson)
    db.commit()

    logger.info(f"Lesson deleted: {deleted.id}")
    return LessonDeleted(message="Lesson deleted successfully", lesson=deleted)
