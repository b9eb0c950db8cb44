"""Persistence of progress snapshots through SQLAlchemy.

The engine hands a serialized snapshot to a sink at checkpoints and carries
on regardless of the outcome; the in-memory Progress stays authoritative
for the running session.
"""
import logging
from datetime import date
from typing import Any, Callable, Dict, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from finquiz.db.models import CompletedLesson, CompletedModule, Learner, LearnerAchievement, LearnerProgress
from finquiz.services.state import Progress

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Saving a snapshot failed."""


class SqlProgressSink:
    """Writes progress snapshots using sessions from ``session_factory``."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def save(self, learner_id: str, snapshot: Dict[str, Any]) -> None:
        """
        Upsert a learner's snapshot.

        Counters overwrite the learner_progress row; completed lessons,
        completed modules and achievements are only ever inserted.

        Args:
            learner_id: Learner the snapshot belongs to
            snapshot: Output of Progress.to_dict()

        Raises:
            PersistenceError: the write failed and was rolled back
        """
        db = self._session_factory()
        try:
            row = db.query(LearnerProgress).filter(LearnerProgress.learner_id == learner_id).first()
            if row is None:
                row = LearnerProgress(learner_id=learner_id)
                db.add(row)

            row.total_points = snapshot["total_points"]
            row.current_streak = snapshot["current_streak"]
            row.best_streak = snapshot["best_streak"]
            row.current_level_index = snapshot["current_level_index"]
            row.perfect_lessons = snapshot["perfect_lessons"]
            row.xp = snapshot["xp"]
            row.streak_days = snapshot["streak_days"]
            last_practice = snapshot["last_practice_date"]
            row.last_practice_date = date.fromisoformat(last_practice) if last_practice else None
            row.current_day_xp = snapshot["current_day_xp"]

            stored_lessons = {
                lesson_id for (lesson_id,) in db.query(CompletedLesson.lesson_id).filter(
                    CompletedLesson.learner_id == learner_id
                )
            }
            for lesson_id in snapshot["completed_lesson_ids"]:
                if lesson_id not in stored_lessons:
                    db.add(CompletedLesson(learner_id=learner_id, lesson_id=lesson_id))

            stored_modules = {
                module_id for (module_id,) in db.query(CompletedModule.module_id).filter(
                    CompletedModule.learner_id == learner_id
                )
            }
            for module_id in snapshot["completed_module_ids"]:
                if module_id not in stored_modules:
                    db.add(CompletedModule(learner_id=learner_id, module_id=module_id))

            stored_codes = {
                code for (code,) in db.query(LearnerAchievement.code).filter(
                    LearnerAchievement.learner_id == learner_id
                )
            }
            for code in snapshot["achievements"]:
                if code not in stored_codes:
                    db.add(LearnerAchievement(learner_id=learner_id, code=code))

            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(str(e)) from e
        finally:
            db.close()


def load_progress(db: Session, learner_id: str) -> Optional[Progress]:
    """
    Load a learner's persisted progress.

    Args:
        db: Database session
        learner_id: Learner id

    Returns:
        Progress, or None when the learner does not exist
    """
    learner = db.query(Learner).filter(Learner.id == learner_id).first()
    if learner is None:
        return None

    row = learner.progress
    if row is None:
        return Progress(
            completed_lesson_ids={c.lesson_id for c in learner.completed_lessons},
            completed_module_ids={c.module_id for c in learner.completed_modules},
            achievements={a.code for a in learner.achievements},
        )

    return Progress(
        total_points=row.total_points,
        current_streak=row.current_streak,
        best_streak=row.best_streak,
        current_level_index=row.current_level_index,
        completed_lesson_ids={c.lesson_id for c in learner.completed_lessons},
        perfect_lessons=row.perfect_lessons,
        xp=row.xp,
        streak_days=row.streak_days,
        last_practice_date=row.last_practice_date,
        current_day_xp=row.current_day_xp,
        completed_module_ids={c.module_id for c in learner.completed_modules},
        achievements={a.code for a in learner.achievements},
    )


def delete_progress(db: Session, learner_id: str) -> bool:
    """
    Full account reset: remove all persisted progress of a learner.

    The learner row itself is kept so the cookie stays valid.

    Returns:
        True if the learner exists
    """
    learner = db.query(Learner).filter(Learner.id == learner_id).first()
    if learner is None:
        return False

    db.query(LearnerAchievement).filter(LearnerAchievement.learner_id == learner_id).delete()
    db.query(CompletedModule).filter(CompletedModule.learner_id == learner_id).delete()
    db.query(CompletedLesson).filter(CompletedLesson.learner_id == learner_id).delete()
    db.query(LearnerProgress).filter(LearnerProgress.learner_id == learner_id).delete()
    db.commit()
    return True
