"""
QuizQuestion model - the persisted question bank
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.types import TypeDecorator, JSON
from numbly.database import Base

OPTION_COUNT = 4


class QuestionOptions(TypeDecorator):
    """
    Exactly four non-empty answer strings, stored as a JSON array.
    
    Values are checked when bound to a statement so a malformed list never
    reaches the table.
    """
    impl = JSON
    cache_ok = True
    
    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        options = list(value)
        if len(options) != OPTION_COUNT:
            raise ValueError(f"Question must have exactly {OPTION_COUNT} options, got {len(options)}")
        if not all(isinstance(opt, str) and opt.strip() for opt in options):
            raise ValueError("All options must be non-empty strings")
        return options
    
    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return list(value)


class QuizQuestion(Base):
    """
    Quiz questions table - multiple choice, correct_answer indexes into options
    """
    __tablename__ = "quiz_questions"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    question = Column(Text, nullable=False)
    options = Column(QuestionOptions, nullable=False)
    correct_answer = Column(Integer, nullable=False)  # 0..3
    explanation = Column(Text, nullable=False)
    topic = Column(String(50), nullable=False, index=True)
    difficulty = Column(String(20), nullable=False, index=True)  # Beginner | Intermediate | Advanced
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    
    def __repr__(self):
        return f"<QuizQuestion(id={self.id}, topic={self.topic}, difficulty={self.difficulty})>"
