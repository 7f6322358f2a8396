"""
AI quiz generation API endpoints
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
import logging

from numbly.config import settings
from numbly.database import get_db
from numbly.schemas.quiz import (
    DifficultyLevel,
    MathTopic,
    QuizGenerateRequest,
    QuizGenerateResponse,
)
from numbly.services.question_generator import QuestionGenerator, get_question_generator
from numbly.services.question_mapper import to_quiz_question
from numbly.services.quiz_composer import compose_progressive_quiz

router = APIRouter(prefix="/api/quiz", tags=["quiz"])
logger = logging.getLogger(__name__)


@router.get("/generate")
async def generation_info():
    """Describe the generation endpoint and its accepted values"""
    return {
        "status": "ok",
        "endpoint": "/api/quiz/generate",
        "validTopics": [topic.value for topic in MathTopic],
        "validDifficulties": [level.value for level in DifficultyLevel],
        "defaultCount": settings.DEFAULT_QUIZ_QUESTIONS,
        "maxCount": settings.MAX_QUIZ_QUESTIONS,
    }


@router.post("/generate", response_model=QuizGenerateResponse)
async def generate_quiz(
    request: QuizGenerateRequest,
    generator: QuestionGenerator = Depends(get_question_generator),
    db: Session = Depends(get_db)
):
    """
    Generate multiple-choice questions with the configured AI provider

    - progressive: 30% easy, 40% medium, 30% hard, in that order
    - otherwise all questions at one difficulty (default medium)
    - save: also store the questions in the question bank

    Provider errors are not retried; nothing partial is returned.
    """

    logger.info(
        f"Generating quiz: topic={request.topic.value}, count={request.count}, "
        f"progressive={request.progressive}, provider={generator.name}"
    )

    if request.progressive:
        questions = await run_in_threadpool(
            compose_progressive_quiz, generator, request.topic, request.count
        )
    else:
        questions = await run_in_threadpool(
            generator.generate,
            request.topic,
            request.difficulty or DifficultyLevel.MEDIUM,
            request.count
        )

    if request.save:
        records = [to_quiz_question(q) for q in questions]
        db.add_all(records)
        db.commit()
        logger.info(f"Saved {len(records)} generated questions to the question bank")

    return QuizGenerateResponse(
        questions=questions,
        generated_at=datetime.now(timezone.utc)
    )
