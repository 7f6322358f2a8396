"""
Achievement model - badges earned by a user
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from numbly.database import Base


class Achievement(Base):
    """
    Achievements table - a user holds each achievement type at most once
    """
    __tablename__ = "achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_type", name="uq_achievements_user_type"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    achievement_type = Column(String(50), nullable=False)
    achievement_name = Column(String(255), nullable=False)
    achievement_description = Column(Text, nullable=False)
    earned_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    
    def __repr__(self):
        return f"<Achievement(user_id={self.user_id}, type={self.achievement_type})>"
