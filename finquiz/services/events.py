"""Events published by the progress engine for the UI layer to drain.

The engine pushes plain dataclass events onto an ``EventChannel``. The web
layer drains the channel after each operation and returns the events in the
response body, which is where the client shows toasts and celebrations.
"""
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Callable, Deque, Dict, List, Optional


@dataclass(frozen=True)
class PointsAwarded:
    """Points added to the lifetime total for one correct answer."""
    amount: int
    kind: str = "points_awarded"


@dataclass(frozen=True)
class StreakMilestone:
    """The answer streak reached a multiple of the band size."""
    streak: int
    kind: str = "streak_milestone"


@dataclass(frozen=True)
class LevelReached:
    """Cumulative points crossed into a higher level."""
    from_index: int
    to_index: int
    name: str
    kind: str = "level_reached"


@dataclass(frozen=True)
class XPAwarded:
    """XP added to the display ledger after a finished lesson."""
    amount: int
    total_xp: int
    display_level: int
    kind: str = "xp_awarded"


@dataclass(frozen=True)
class LessonCompleted:
    """A lesson entered the completion record for the first time."""
    lesson_id: str
    unlocked_lesson_id: Optional[str] = None
    kind: str = "lesson_completed"


@dataclass(frozen=True)
class ModuleCompleted:
    """Every lesson of a module is now completed."""
    module_id: str
    kind: str = "module_completed"


@dataclass(frozen=True)
class AchievementUnlocked:
    """A badge rule was satisfied for the first time."""
    code: str
    title: str
    kind: str = "achievement_unlocked"


@dataclass(frozen=True)
class PersistenceFailed:
    """Saving the progress snapshot failed; in-memory state is still current."""
    reason: str
    kind: str = "persistence_failed"


class EventChannel:
    """FIFO of pending events plus optional synchronous subscribers."""

    def __init__(self):
        self._pending: Deque[Any] = deque()
        self._subscribers: List[Callable[[Any], None]] = []

    def subscribe(self, callback: Callable[[Any], None]) -> None:
        """Register a callback invoked with every published event."""
        self._subscribers.append(callback)

    def publish(self, event: Any) -> None:
        self._pending.append(event)
        for callback in self._subscribers:
            callback(event)

    def drain(self) -> List[Any]:
        """Return and clear all pending events, oldest first."""
        events = list(self._pending)
        self._pending.clear()
        return events

    def __len__(self) -> int:
        return len(self._pending)


def event_to_dict(event: Any) -> Dict[str, Any]:
    """Serialize an event dataclass for a JSON response."""
    return asdict(event)
