import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from numbly.database import enable_sqlite_foreign_keys, get_db, init_db
from numbly.errors import ServiceError
from numbly.main import app
from numbly.models import Lesson, QuizAttempt, QuizQuestion, User, UserProgress, UserSession
from numbly.schemas.quiz import GeneratedQuestion
from numbly.services.question_generator import QuestionGenerator


def question_payload(index, topic="addition", difficulty="easy", correct=1):
    """A generated question as a provider would return it"""
    return {
        "id": f"{difficulty}-{index}",
        "question": f"What is {index} + {index}?",
        "topic": topic,
        "difficulty": difficulty,
        "options": [
            {"id": option_id, "text": str(index * 2 + offset), "isCorrect": i == correct}
            for i, (option_id, offset) in enumerate(zip("ABCD", (-1, 0, 1, 2)))
        ],
        "correctAnswerExplanation": f"{index} + {index} = {index * 2}",
    }


class FakeGenerator(QuestionGenerator):
    """Records each call; optionally fails on one difficulty"""

    name = "fake"

    def __init__(self, fail_on=None, error=None):
        self.calls = []
        self.fail_on = fail_on
        self.error = error or ServiceError("provider down")

    def generate(self, topic, difficulty, count):
        self.calls.append((topic.value, difficulty.value, count))
        if self.fail_on is not None and difficulty.value == self.fail_on:
            raise self.error
        return [
            GeneratedQuestion.model_validate(question_payload(i, topic.value, difficulty.value))
            for i in range(count)
        ]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(name="Ada"):
        user = User(id=str(uuid.uuid4()), name=name, email=f"{uuid.uuid4().hex[:8]}@example.com")
        db.add(user)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def make_session(db):
    def _make_session(user, expires_in=timedelta(days=1)):
        session = UserSession(
            token=uuid.uuid4().hex,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + expires_in,
        )
        db.add(session)
        db.commit()
        return session
    return _make_session


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def auth_headers(user, make_session):
    return {"Authorization": f"Bearer {make_session(user).token}"}


@pytest.fixture
def make_question(db):
    def _make_question(topic="addition", difficulty="Beginner", correct_answer=2, text="What is 2 + 2?"):
        question = QuizQuestion(
            question=text,
            options=["2", "3", "4", "5"],
            correct_answer=correct_answer,
            explanation="Count up two from two.",
            topic=topic,
            difficulty=difficulty,
        )
        db.add(question)
        db.commit()
        return question
    return _make_question


@pytest.fixture
def make_attempt(db):
    def _make_attempt(user, question, is_correct=True, time_taken=10, minutes_ago=0):
        attempt = QuizAttempt(
            user_id=user.id,
            quiz_question_id=question.id,
            user_answer=question.correct_answer if is_correct else (question.correct_answer + 1) % 4,
            is_correct=is_correct,
            time_taken=time_taken,
            created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        )
        db.add(attempt)
        db.commit()
        return attempt
    return _make_attempt


@pytest.fixture
def make_lesson(db):
    def _make_lesson(title="Basic Addition", difficulty="Beginner", order_index=1, description=None):
        lesson = Lesson(
            title=title,
            description=description,
            duration="10 min",
            difficulty=difficulty,
            order_index=order_index,
        )
        db.add(lesson)
        db.commit()
        return lesson
    return _make_lesson


@pytest.fixture
def make_progress(db):
    def _make_progress(user, lesson, progress=50, completed=False, minutes_ago=0):
        accessed = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
        record = UserProgress(
            user_id=user.id,
            lesson_id=lesson.id,
            progress=progress,
            completed=completed,
            last_accessed=accessed,
        )
        db.add(record)
        db.commit()
        return record
    return _make_progress
