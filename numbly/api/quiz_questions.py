"""
Question bank API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional, Union
import logging

from numbly.config import settings
from numbly.database import get_db
from numbly.errors import NotFoundError, ValidationError
from numbly.models import QuizQuestion
from numbly.schemas.quiz import (
    QuizQuestionCreate,
    QuizQuestionUpdate,
    QuizQuestionResponse,
    QuizQuestionDeleted,
)

router = APIRouter(prefix="/api/quiz-questions", tags=["quiz-questions"])
logger = logging.getLogger(__name__)


def _parse_id(id: Optional[str]) -> int:
    try:
        return int(id)
    except (TypeError, ValueError):
        raise ValidationError("Valid ID is required", code="INVALID_ID")


def _get_question_or_404(db: Session, question_id: int) -> QuizQuestion:
    question = db.query(QuizQuestion).filter(QuizQuestion.id == question_id).first()
    if not question:
        raise NotFoundError("Quiz question not found")
    return question


@router.get("", response_model=Union[QuizQuestionResponse, List[QuizQuestionResponse]])
async def list_quiz_questions(
    id: Optional[str] = None,
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    search: Optional[str] = None,
    topic: Optional[str] = None,
    difficulty: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Fetch one question by id, or list questions

    - Pagination via limit (max 100) and offset
    - search matches question text
    - topic and difficulty filter exactly
    """

    if id is not None:
        return _get_question_or_404(db, _parse_id(id))

    query = db.query(QuizQuestion)

    if search:
        query = query.filter(QuizQuestion.question.contains(search, autoescape=True))
    if topic:
        query = query.filter(QuizQuestion.topic == topic)
    if difficulty:
        query = query.filter(QuizQuestion.difficulty == difficulty)

    return query.order_by(QuizQuestion.id).limit(min(limit, 100)).offset(offset).all()


@router.get("/random", response_model=List[QuizQuestionResponse])
async def random_quiz_questions(
    count: Optional[str] = None,
    topic: Optional[str] = None,
    difficulty: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Draw a random set of questions, optionally filtered"""

    try:
        question_count = int(count) if count is not None else 5
    except ValueError:
        question_count = 0
    if not 1 <= question_count <= settings.MAX_QUIZ_QUESTIONS:
        raise ValidationError(
            f"Count must be between 1 and {settings.MAX_QUIZ_QUESTIONS}",
            code="INVALID_COUNT"
        )

    query = db.query(QuizQuestion)
    if topic:
        query = query.filter(QuizQuestion.topic == topic)
    if difficulty:
        query = query.filter(QuizQuestion.difficulty == difficulty)

    return query.order_by(func.random()).limit(question_count).all()


@router.post("", response_model=QuizQuestionResponse, status_code=201)
async def create_quiz_question(
    payload: QuizQuestionCreate,
    db: Session = Depends(get_db)
):
    """Add a question to the bank"""

    question = QuizQuestion(
        question=payload.question,
        options=payload.options,
        correct_answer=payload.correct_answer,
        explanation=payload.explanation,
        topic=payload.topic,
        difficulty=payload.difficulty.value,
    )

    db.add(question)
    db.commit()
    db.refresh(question)

    logger.info(f"Quiz question created: {question.id}")
    return question


@router.put("", response_model=QuizQuestionResponse)
async def update_quiz_question(
    payload: QuizQuestionUpdate,
    id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Update the provided fields of a question"""

    question = _get_question_or_404(db, _parse_id(id))

    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        return question

    if "difficulty" in updates:
        updates["difficulty"] = updates["difficulty"].value
    for field, value in updates.items():
        setattr(question, field, value)

    db.commit()
    db.refresh(question)

    logger.info(f"Quiz question updated: {question.id} ({', '.join(updates)})")
    return question


@router.delete("", response_model=QuizQuestionDeleted)
async def delete_quiz_question(
    id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Delete a question; its attempts are removed by cascade"""

    question = _get_question_or_404(db, _parse_id(id))
    deleted = QuizQuestionResponse.model_validate(question)

    db.delete(question)
    db.commit()

    logger.info(f"Quiz question deleted: {deleted.id}")
    return QuizQuestionDeleted(message="Quiz question deleted successfully", deleted=deleted)
