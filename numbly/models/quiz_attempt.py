"""
QuizAttempt model - one answer submission, immutable once written
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from numbly.database import Base


class QuizAttempt(Base):
    """
    Quiz attempts table - links a user to a question with correctness and timing
    """
    __tablename__ = "quiz_attempts"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_question_id = Column(
        Integer,
        ForeignKey("quiz_questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_answer = Column(Integer, nullable=False)  # 0..3
    is_correct = Column(Boolean, nullable=False)
    time_taken = Column(Integer, nullable=False)  # seconds
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)
    
    def __repr__(self):
        return f"<QuizAttempt(user_id={self.user_id}, question={self.quiz_question_id}, correct={self.is_correct})>"
