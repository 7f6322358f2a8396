"""
Analytics service for quiz attempt statistics
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Any, Optional, Sequence
from sqlalchemy.orm import Session
from numbly.models import QuizAttempt, QuizQuestion

logger = logging.getLogger(__name__)

RECENT_ATTEMPTS_LIMIT = 10
UNKNOWN_GROUP = "Unknown"


def round_half_up(value: float, digits: int = 2) -> float:
    """Round with halves going up (0.625 -> 0.63), unlike the built-in round"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


@dataclass
class AttemptView:
    """
    An attempt joined with its question.

    Question fields are None when the question row is missing (left join).
    """
    id: int
    user_id: str
    quiz_question_id: int
    user_answer: int
    is_correct: bool
    time_taken: Optional[int]
    created_at: datetime
    question: Optional[str] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[int] = None
    explanation: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None


class AnalyticsService:
    """Service for computing quiz performance statistics"""

    def get_user_stats(self, db: Session, user_id: str) -> Dict[str, Any]:
        """
        Load a user's attempt history and aggregate it

        Args:
            db: Database session
            user_id: User id

        Returns:
            Dictionary with StatsSummary fields
        """
        attempts = self.load_attempt_views(db, user_id)
        logger.info(f"Aggregating {len(attempts)} attempts for user {user_id}")
        return self.compute_stats(attempts)

    def load_attempt_views(self, db: Session, user_id: str) -> List[AttemptView]:
        """Fetch a user's attempts joined with their questions, newest first"""

        rows = db.query(
            QuizAttempt.id,
            QuizAttempt.user_id,
            QuizAttempt.quiz_question_id,
            QuizAttempt.user_answer,
            QuizAttempt.is_correct,
            QuizAttempt.time_taken,
            QuizAttempt.created_at,
            QuizQuestion.question,
            QuizQuestion.options,
            QuizQuestion.correct_answer,
            QuizQuestion.explanation,
            QuizQuestion.topic,
            QuizQuestion.difficulty,
        ).outerjoin(
            QuizQuestion, QuizAttempt.quiz_question_id == QuizQuestion.id
        ).filter(
            QuizAttempt.user_id == user_id
        ).order_by(
            QuizAttempt.created_at.desc(),
            QuizAttempt.id.desc()
        ).all()

        return [AttemptView(**row._asdict()) for row in rows]

    def compute_stats(self, attempts: Sequence[AttemptView]) -> Dict[str, Any]:
        """
        Aggregate a newest-first attempt history into summary statistics

        Pure function of its input; every input shape, including the empty
        history, has a defined result.
        """

        if not attempts:
            return {
                "total_attempts": 0,
                "correct_answers": 0,
                "incorrect_answers": 0,
                "accuracy_rate": 0,
                "average_time_taken": 0,
                "total_time_practicing": 0,
                "stats_by_topic": [],
                "stats_by_difficulty": [],
                "recent_attempts": [],
                "perfect_score_streak": 0
            }

        total_attempts = len(attempts)
        correct_answers = sum(1 for a in attempts if a.is_correct)
        incorrect_answers = total_attempts - correct_answers
        accuracy_rate = correct_answers / total_attempts * 100
        total_time_practicing = sum(a.time_taken or 0 for a in attempts)
        average_time_taken = total_time_practicing / total_attempts

        return {
            "total_attempts": total_attempts,
            "correct_answers": correct_answers,
            "incorrect_answers": incorrect_answers,
            "accuracy_rate": round_half_up(accuracy_rate),
            "average_time_taken": round_half_up(average_time_taken),
            "total_time_practicing": total_time_practicing,
            "stats_by_topic": self._group_stats(attempts, "topic"),
            "stats_by_difficulty": self._group_stats(attempts, "difficulty"),
            "recent_attempts": [
                self._recent_attempt(a) for a in attempts[:RECENT_ATTEMPTS_LIMIT]
            ],
            "perfect_score_streak": self._perfect_score_streak(attempts)
        }

    def _group_stats(self, attempts: Sequence[AttemptView], field: str) -> List[Dict[str, Any]]:
        """Attempts and correct counts per topic or difficulty, in first-seen order"""

        groups: Dict[str, Dict[str, int]] = {}

        for attempt in attempts:
            key = getattr(attempt, field) or UNKNOWN_GROUP
            if key not in groups:
                groups[key] = {"attempts": 0, "correct": 0}
            groups[key]["attempts"] += 1
            if attempt.is_correct:
                groups[key]["correct"] += 1

        # accuracy stays unrounded here, unlike the top-level accuracy_rate
        return [
            {
                field: key,
                "attempts": counts["attempts"],
                "correct": counts["correct"],
                "accuracy": counts["correct"] / counts["attempts"] * 100
            }
            for key, counts in groups.items()
        ]

    def _recent_attempt(self, attempt: AttemptView) -> Dict[str, Any]:
        return {
            "id": attempt.id,
            "quiz_question_id": attempt.quiz_question_id,
            "question": attempt.question,
            "options": attempt.options,
            "user_answer": attempt.user_answer,
            "correct_answer": attempt.correct_answer,
            "is_correct": attempt.is_correct,
            "time_taken": attempt.time_taken,
            "explanation": attempt.explanation,
            "topic": attempt.topic,
            "difficulty": attempt.difficulty,
            "created_at": attempt.created_at
        }

    def _perfect_score_streak(self, attempts: Sequence[AttemptView]) -> int:
        """Consecutive correct answers ending at the most recent attempt"""

        streak = 0
        for attempt in attempts:
            if not attempt.is_correct:
                break
            streak += 1
        return streak


# Global instance
analytics_service = AnalyticsService()
