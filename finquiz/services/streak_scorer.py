"""Streak-based point scoring for answered questions."""
import logging
from typing import Sequence
from finquiz.constants import BASE_POINTS_PER_CORRECT, STREAK_BAND_MULTIPLIER, STREAK_BAND_SIZE
from finquiz.services.events import EventChannel, LevelReached, PointsAwarded, StreakMilestone
from finquiz.services.level_resolver import LevelTier, resolve_level
from finquiz.services.state import Progress

logger = logging.getLogger(__name__)


def points_for_streak(streak: int) -> int:
    """
    Calculate points for the answer that brought the streak to ``streak``.

    Formula:
    - points = floor(10 * 1.2 ** floor(streak / 5))
    - streak 1-4 -> 10, 5-9 -> 12, 10-14 -> 14, 15-19 -> 17, ...

    The multiplier is a Fraction so band boundaries never suffer float
    rounding (10 * 1.2 must be exactly 12).

    Args:
        streak: Current streak including this answer (>= 1)

    Returns:
        Points awarded for this answer
    """
    band = streak // STREAK_BAND_SIZE
    return int(BASE_POINTS_PER_CORRECT * STREAK_BAND_MULTIPLIER ** band)


def record_answer(
    progress: Progress,
    is_correct: bool,
    levels: Sequence[LevelTier],
    channel: EventChannel
) -> int:
    """
    Apply one answered question to a learner's progress.

    Correct answer:
    - current_streak += 1, best_streak follows it upward
    - points_for_streak() added to total_points, PointsAwarded published
    - StreakMilestone published on every multiple of the band size
    - level re-resolved; LevelReached published if it moved

    Incorrect answer:
    - current_streak reset to 0, nothing else changes, nothing published

    Args:
        progress: Learner progress to mutate
        is_correct: Whether the answer was correct
        levels: Ordered level table
        channel: Event channel for UI feedback

    Returns:
        Points awarded (0 for an incorrect answer)
    """
    if not is_correct:
        progress.current_streak = 0
        return 0

    progress.current_streak += 1
    progress.best_streak = max(progress.best_streak, progress.current_streak)

    awarded = points_for_streak(progress.current_streak)
    channel.publish(PointsAwarded(amount=awarded))

    if progress.current_streak % STREAK_BAND_SIZE == 0:
        channel.publish(StreakMilestone(streak=progress.current_streak))

    progress.total_points += awarded

    previous_index = progress.current_level_index
    progress.current_level_index = resolve_level(progress.total_points, levels, previous_index)
    if progress.current_level_index != previous_index:
        level = levels[progress.current_level_index]
        logger.debug(f"Level up {previous_index} -> {progress.current_level_index} at {progress.total_points} points")
        channel.publish(LevelReached(
            from_index=previous_index,
            to_index=progress.current_level_index,
            name=level.name
        ))

    return awarded
