"""
Request-scoped authentication context
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from numbly.database import get_db
from numbly.errors import AuthRequiredError
from numbly.models import UserSession


@dataclass(frozen=True)
class AuthContext:
    """Who is making the current request"""
    user_id: str
    session_id: str
    token: str


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_auth_context(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> AuthContext:
    """Resolve the bearer token to an unexpired session or raise AuthRequiredError"""

    token = _bearer_token(authorization)
    if not token:
        raise AuthRequiredError("Authentication required")

    session = db.query(UserSession).filter(UserSession.token == token).first()
    if not session:
        raise AuthRequiredError("Authentication required")

    expires_at = session.expires_at
    # SQLite hands back naive datetimes; they are stored as UTC
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at <= datetime.now(timezone.utc):
        raise AuthRequiredError("Session expired", code="SESSION_EXPIRED")

    return AuthContext(user_id=session.user_id, session_id=session.id, token=token)
