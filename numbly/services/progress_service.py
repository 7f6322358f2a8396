"""
Progress service for lesson completion statistics
"""
import logging
from typing import Dict, List, Any, Optional, Sequence
from sqlalchemy.orm import Session
from numbly.models import Lesson, UserProgress
from numbly.services.analytics_service import round_half_up

logger = logging.getLogger(__name__)


def _percent(part: int, whole: int) -> int:
    return int(round_half_up(part / whole * 100, 0)) if whole else 0


class ProgressService:
    """Service for summarising a user's lesson progress"""

    def get_progress_stats(self, db: Session, user_id: str) -> Dict[str, Any]:
        """
        Load the lesson catalogue and the user's progress rows and summarise them

        Args:
            db: Database session
            user_id: User id

        Returns:
            Dictionary with ProgressStats fields
        """
        lessons = db.query(Lesson).order_by(Lesson.id).all()
        records = db.query(UserProgress).filter(
            UserProgress.user_id == user_id
        ).order_by(UserProgress.id).all()

        logger.info(f"Summarising progress on {len(records)} of {len(lessons)} lessons for user {user_id}")
        return self.compute_progress_stats(lessons, records)

    def compute_progress_stats(
        self,
        lessons: Sequence[Lesson],
        records: Sequence[UserProgress]
    ) -> Dict[str, Any]:
        """
        Summarise progress records against the full lesson catalogue

        A lesson is completed when its record says so, in progress when it has
        a record with progress above zero that is not completed, and not
        started otherwise.
        """

        total_lessons = len(lessons)
        completed_lessons = sum(1 for r in records if r.completed)
        in_progress_lessons = sum(1 for r in records if r.progress > 0 and not r.completed)

        if records:
            average_progress = int(round_half_up(sum(r.progress for r in records) / len(records), 0))
        else:
            average_progress = 0

        return {
            "total_lessons": total_lessons,
            "completed_lessons": completed_lessons,
            "in_progress_lessons": in_progress_lessons,
            "not_started_lessons": total_lessons - (completed_lessons + in_progress_lessons),
            "average_progress": average_progress,
            "overall_completion_rate": _percent(completed_lessons, total_lessons),
            "last_accessed_lesson": self._last_accessed_lesson(lessons, records),
            "progress_by_difficulty": self._progress_by_difficulty(lessons, records)
        }

    def _last_accessed_lesson(
        self,
        lessons: Sequence[Lesson],
        records: Sequence[UserProgress]
    ) -> Optional[Dict[str, Any]]:
        if not records:
            return None

        latest = max(records, key=lambda r: (r.last_accessed, r.id))
        lesson = next((item for item in lessons if item.id == latest.lesson_id), None)
        if lesson is None:
            return None

        return {
            "id": lesson.id,
            "title": lesson.title,
            "description": lesson.description,
            "duration": lesson.duration,
            "difficulty": lesson.difficulty,
            "order_index": lesson.order_index,
            "created_at": lesson.created_at,
            "progress": latest.progress,
            "completed": latest.completed,
            "last_accessed": latest.last_accessed
        }

    def _progress_by_difficulty(
        self,
        lessons: Sequence[Lesson],
        records: Sequence[UserProgress]
    ) -> Dict[str, Dict[str, int]]:
        """Lesson counts per difficulty, in first-seen catalogue order"""

        breakdown: Dict[str, Dict[str, int]] = {}
        lesson_difficulty = {}

        for lesson in lessons:
            lesson_difficulty[lesson.id] = lesson.difficulty
            if lesson.difficulty not in breakdown:
                breakdown[lesson.difficulty] = {"total": 0, "completed": 0, "in_progress": 0}
            breakdown[lesson.difficulty]["total"] += 1

        for record in records:
            difficulty = lesson_difficulty.get(record.lesson_id)
            if difficulty is None:
                continue
            if record.completed:
                breakdown[difficulty]["completed"] += 1
            elif record.progress > 0:
                breakdown[difficulty]["in_progress"] += 1

        results: Dict[str, Dict[str, int]] = {}
        for difficulty, counts in breakdown.items():
            results[difficulty] = {
                "total": counts["total"],
                "completed": counts["completed"],
                "in_progress": counts["in_progress"],
                "not_started": counts["total"] - (counts["completed"] + counts["in_progress"]),
                "completion_rate": _percent(counts["completed"], counts["total"])
            }
        return results


# Global instance
progress_service = ProgressService()
