"""
Lesson progress tracking and statistics API endpoints
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from numbly.database import get_db
from numbly.errors import NotFoundError, ValidationError
from numbly.models import Lesson, User, UserProgress
from numbly.schemas.lesson import (
    ProgressLesson,
    ProgressResponse,
    ProgressStats,
    ProgressUpdate,
    ProgressWithLesson,
)
from numbly.services.progress_service import progress_service
from numbly.utils.auth import AuthContext, get_auth_context

router = APIRouter(prefix="/api/user-progress", tags=["user-progress"])
logger = logging.getLogger(__name__)

COMPLETE = 100


@router.get("", response_model=List[ProgressWithLesson])
async def list_progress(
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """The caller's progress records in catalogue order, each with its lesson"""

    rows = db.query(UserProgress, Lesson).join(
        Lesson, UserProgress.lesson_id == Lesson.id
    ).filter(
        UserProgress.user_id == auth.user_id
    ).order_by(
        Lesson.order_index,
        Lesson.id
    ).limit(min(limit, 100)).offset(offset).all()

    results = []
    for record, lesson in rows:
        item = ProgressResponse.model_validate(record).model_dump()
        item["lesson"] = ProgressLesson.model_validate(lesson)
        results.append(ProgressWithLesson(**item))

    return results


@router.post("", response_model=ProgressResponse)
async def update_progress(
    body: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Create or update the caller's progress on a lesson

    - One record per user and lesson; later posts overwrite it
    - Progress of 100 marks the lesson completed
    """

    if "userId" in body or "user_id" in body:
        raise ValidationError(
            "User ID cannot be provided in request body",
            code="USER_ID_NOT_ALLOWED"
        )

    payload = ProgressUpdate.model_validate(body)

    lesson = db.query(Lesson).filter(Lesson.id == payload.lesson_id).first()
    if not lesson:
        raise NotFoundError("Lesson not found", code="LESSON_NOT_FOUND")

    completed = payload.completed or payload.progress >= COMPLETE
    now = datetime.now(timezone.utc)

    record = db.query(UserProgress).filter(
        UserProgress.user_id == auth.user_id,
        UserProgress.lesson_id == lesson.id
    ).first()

    if not record:
        record = UserProgress(
            user_id=auth.user_id,
            lesson_id=lesson.id,
            created_at=now
        )
        db.add(record)

    record.progress = payload.progress
    record.completed = completed
    record.last_accessed = now
    record.updated_at = now

    db.commit()
    db.refresh(record)

    logger.info(
        f"Progress updated: user={auth.user_id}, lesson={lesson.id}, "
        f"progress={record.progress}, completed={record.completed}"
    )
    return record


@router.get("/stats", response_model=ProgressStats)
async def get_progress_stats(
    userId: Optional[str] = None,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Summarise lesson progress for the signed-in user

    Returns:
    - Completed, in progress and not started lesson counts
    - Average progress and overall completion rate
    - Last accessed lesson
    - Breakdown by lesson difficulty
    """

    if not userId:
        raise ValidationError("userId query parameter is required", code="MISSING_USER_ID")

    # another user's stats are reported exactly like a missing user
    if userId != auth.user_id or not db.query(User.id).filter(User.id == userId).first():
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    logger.info(f"Fetching progress stats for user {userId}")
    return ProgressStats(**progress_service.get_progress_stats(db, userId))
