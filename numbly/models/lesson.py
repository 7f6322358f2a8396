"""
Lesson model - the ordered lesson catalogue
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime
from numbly.database import Base


class Lesson(Base):
    """
    Lessons table - title, estimated duration and difficulty, shown in order_index order
    """
    __tablename__ = "lessons"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    duration = Column(String(50), nullable=False)  # "15 min"
    difficulty = Column(String(20), nullable=False)  # Beginner | Intermediate | Advanced
    order_index = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    
    def __repr__(self):
        return f"<Lesson(id={self.id}, title={self.title})>"
