"""Learner progress state owned by a progress engine."""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Set


@dataclass
class Progress:
    """Long-lived progress for one learner.

    Mutated only through the progress engine services. The points ledger
    (``total_points`` / ``current_level_index``) and the XP ledger (``xp``)
    are deliberately independent currencies.

    Attributes:
        total_points: Cumulative streak-scored points across all sessions
        current_streak: Consecutive correct answers since the last miss
        best_streak: Historical maximum of current_streak
        current_level_index: Index into the level table, never decreases
        completed_lesson_ids: Lessons passed at 75% or better (add-only)
        perfect_lessons: Number of finished attempts scored 100%
        xp: Lesson-completion XP total
        streak_days: Consecutive calendar days with an XP award
        last_practice_date: Day of the most recent XP award
        current_day_xp: XP earned on last_practice_date
        completed_module_ids: Modules whose lessons are all completed (add-only)
        achievements: Unlocked achievement codes (add-only)
    """
    total_points: int = 0
    current_streak: int = 0
    best_streak: int = 0
    current_level_index: int = 0
    completed_lesson_ids: Set[str] = field(default_factory=set)
    perfect_lessons: int = 0
    xp: int = 0
    streak_days: int = 0
    last_practice_date: Optional[date] = None
    current_day_xp: int = 0
    completed_module_ids: Set[str] = field(default_factory=set)
    achievements: Set[str] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable snapshot with sets as sorted lists."""
        return {
            "total_points": self.total_points,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "current_level_index": self.current_level_index,
            "completed_lesson_ids": sorted(self.completed_lesson_ids),
            "perfect_lessons": self.perfect_lessons,
            "xp": self.xp,
            "streak_days": self.streak_days,
            "last_practice_date": (
                self.last_practice_date.isoformat() if self.last_practice_date else None
            ),
            "current_day_xp": self.current_day_xp,
            "completed_module_ids": sorted(self.completed_module_ids),
            "achievements": sorted(self.achievements),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Progress":
        """Rebuild progress from a snapshot produced by ``to_dict``.

        Missing keys fall back to the zero state so older snapshots load.
        """
        last_practice = data.get("last_practice_date")
        return cls(
            total_points=int(data.get("total_points", 0)),
            current_streak=int(data.get("current_streak", 0)),
            best_streak=int(data.get("best_streak", 0)),
            current_level_index=int(data.get("current_level_index", 0)),
            completed_lesson_ids=set(data.get("completed_lesson_ids", [])),
            perfect_lessons=int(data.get("perfect_lessons", 0)),
            xp=int(data.get("xp", 0)),
            streak_days=int(data.get("streak_days", 0)),
            last_practice_date=date.fromisoformat(last_practice) if last_practice else None,
            current_day_xp=int(data.get("current_day_xp", 0)),
            completed_module_ids=set(data.get("completed_module_ids", [])),
            achievements=set(data.get("achievements", [])),
        )
