"""
Achievement API endpoints
"""
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from numbly.database import get_db
from numbly.errors import ConflictError, NotFoundError, ValidationError
from numbly.models import Achievement, User
from numbly.schemas.lesson import AchievementCreate, AchievementResponse
from numbly.utils.auth import AuthContext, get_auth_context

router = APIRouter(prefix="/api/achievements", tags=["achievements"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[AchievementResponse])
async def list_achievements(
    userId: Optional[str] = None,
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """The signed-in user's achievements, most recently earned first"""

    if not userId:
        raise ValidationError("userId query parameter is required", code="MISSING_USER_ID")
    if userId != auth.user_id:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    return db.query(Achievement).filter(
        Achievement.user_id == userId
    ).order_by(
        Achievement.earned_at.desc(),
        Achievement.id.desc()
    ).limit(min(limit, 100)).offset(offset).all()


@router.post("", response_model=AchievementResponse, status_code=201)
async def create_achievement(
    body: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Award an achievement to the signed-in user

    Each achievement type can be earned once; a repeat is a 409.
    """

    if "userId" in body or "user_id" in body:
        raise ValidationError(
            "User ID cannot be provided in request body",
            code="USER_ID_NOT_ALLOWED"
        )

    payload = AchievementCreate.model_validate(body)

    if not db.query(User.id).filter(User.id == auth.user_id).first():
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    existing = db.query(Achievement.id).filter(
        Achievement.user_id == auth.user_id,
        Achievement.achievement_type == payload.achievement_type
    ).first()
    if existing:
        raise ConflictError(
            "Achievement already exists for this user",
            code="DUPLICATE_ACHIEVEMENT"
        )

    achievement = Achievement(
        user_id=auth.user_id,
        achievement_type=payload.achievement_type,
        achievement_name=payload.achievement_name,
        achievement_description=payload.achievement_description,
    )

    db.add(achievement)
    db.commit()
    db.refresh(achievement)

    logger.info(f"Achievement earned: {achievement.achievement_type}, user {auth.user_id}")
    return achievement
