"""
Quiz attempt submission, history and statistics API endpoints
"""
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from numbly.database import get_db
from numbly.errors import NotFoundError, ValidationError
from numbly.models import QuizAttempt, QuizQuestion, User
from numbly.schemas.attempt import (
    AttemptQuestion,
    QuizAttemptCreate,
    QuizAttemptResponse,
    QuizAttemptWithQuestion,
)
from numbly.schemas.analytics import StatsSummary
from numbly.services.analytics_service import analytics_service
from numbly.utils.auth import AuthContext, get_auth_context

router = APIRouter(prefix="/api/quiz-attempts", tags=["quiz-attempts"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[QuizAttemptWithQuestion])
async def list_quiz_attempts(
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """The caller's attempts, newest first, each with its question"""

    rows = db.query(QuizAttempt, QuizQuestion).outerjoin(
        QuizQuestion, QuizAttempt.quiz_question_id == QuizQuestion.id
    ).filter(
        QuizAttempt.user_id == auth.user_id
    ).order_by(
        QuizAttempt.created_at.desc(),
        QuizAttempt.id.desc()
    ).limit(min(limit, 100)).offset(offset).all()

    results = []
    for attempt, question in rows:
        item = QuizAttemptResponse.model_validate(attempt).model_dump()
        item["question"] = AttemptQuestion.model_validate(question) if question else AttemptQuestion()
        results.append(QuizAttemptWithQuestion(**item))

    return results


@router.post("", response_model=QuizAttemptResponse, status_code=201)
async def create_quiz_attempt(
    body: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Record an answer for the signed-in user

    - The user always comes from the session, never the body
    - isCorrect is computed against the stored correct answer
    """

    if "userId" in body or "user_id" in body:
        raise ValidationError(
            "User ID cannot be provided in request body",
            code="USER_ID_NOT_ALLOWED"
        )

    payload = QuizAttemptCreate.model_validate(body)

    if not db.query(User.id).filter(User.id == auth.user_id).first():
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    question = db.query(QuizQuestion).filter(QuizQuestion.id == payload.quiz_question_id).first()
    if not question:
        raise NotFoundError("Quiz question not found", code="QUIZ_QUESTION_NOT_FOUND")

    attempt = QuizAttempt(
        user_id=auth.user_id,
        quiz_question_id=question.id,
        user_answer=payload.user_answer,
        is_correct=payload.user_answer == question.correct_answer,
        time_taken=payload.time_taken,
    )

    db.add(attempt)
    db.commit()
    db.refresh(attempt)

    logger.info(f"Quiz attempt saved: {attempt.id}, user {auth.user_id}, correct: {attempt.is_correct}")
    return attempt


@router.get("/stats", response_model=StatsSummary)
async def get_quiz_stats(
    userId: Optional[str] = None,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Aggregate quiz performance for the signed-in user

    Returns:
    - Totals, accuracy and timing
    - Breakdown by topic and by difficulty
    - Last 10 attempts
    - Current streak of correct answers
    """

    if not userId:
        raise ValidationError("userId query parameter is required", code="MISSING_USER_ID")

    # another user's stats are reported exactly like a missing user
    if userId != auth.user_id or not db.query(User.id).filter(User.id == userId).first():
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    logger.info(f"Fetching quiz stats for user {userId}")
    return StatsSummary(**analytics_service.get_user_stats(db, userId))
