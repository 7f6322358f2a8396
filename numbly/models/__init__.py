"""
Database models package
"""
from numbly.models.user import User, UserSession
from numbly.models.lesson import Lesson
from numbly.models.user_progress import UserProgress
from numbly.models.quiz_question import QuizQuestion
from numbly.models.quiz_attempt import QuizAttempt
from numbly.models.achievement import Achievement

__all__ = [
    "User", "UserSession", "Lesson", "UserProgress",
    "QuizQuestion", "QuizAttempt", "Achievement",
]
