"""XP ledger: display level curve, practice-day streak and daily XP.

XP is a second currency, separate from streak points. It is earned per
finished lesson and drives a display level that grows with the square root
of XP, plus a streak of consecutive calendar days with any XP award.
"""
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict
from finquiz.constants import MAX_DISPLAY_LEVEL, MIN_DISPLAY_LEVEL, XP_LEVEL_SCALE
from finquiz.services.events import EventChannel, XPAwarded
from finquiz.services.state import Progress


@dataclass(frozen=True)
class XPUpdate:
    amount: int
    total_xp: int
    display_level: int
    streak_days: int
    streak_extended: bool


def display_level(xp: int) -> int:
    """
    Display level for an XP total.

    Formula: level = floor(sqrt(xp / 1,000,000) + 0.5) + 1, clamped to 1..999.
    """
    level = math.floor(math.sqrt(max(0, xp) / XP_LEVEL_SCALE) + 0.5) + 1
    return min(max(MIN_DISPLAY_LEVEL, level), MAX_DISPLAY_LEVEL)


def xp_for_display_level(level: int) -> int:
    """Approximate XP at which ``level`` is reached (inverse of the curve)."""
    safe_level = max(MIN_DISPLAY_LEVEL, level)
    return max(0, round(XP_LEVEL_SCALE * (safe_level - 1) ** 2))


def update_practice_streak(progress: Progress, today: date) -> bool:
    """
    Advance the practice-day streak for an award made on ``today``.

    - first ever award: streak starts at 1
    - same day as the last award: unchanged
    - the day after the last award: streak + 1
    - any longer gap: streak restarts at 1

    Returns:
        True if the streak changed
    """
    last = progress.last_practice_date

    if last is None:
        progress.streak_days = 1
    elif last == today:
        return False
    elif last == today - timedelta(days=1):
        progress.streak_days += 1
    else:
        progress.streak_days = 1

    progress.last_practice_date = today
    return True


def apply_xp(progress: Progress, amount: int, today: date, channel: EventChannel) -> XPUpdate:
    """
    Add XP to the ledger.

    Args:
        progress: Learner progress to mutate
        amount: XP earned (>= 0)
        today: Calendar day of the award
        channel: Event channel; receives XPAwarded

    Returns:
        XPUpdate summary
    """
    if progress.last_practice_date != today:
        progress.current_day_xp = 0

    streak_extended = update_practice_streak(progress, today)

    progress.xp += amount
    progress.current_day_xp += amount

    level = display_level(progress.xp)
    channel.publish(XPAwarded(amount=amount, total_xp=progress.xp, display_level=level))

    return XPUpdate(
        amount=amount,
        total_xp=progress.xp,
        display_level=level,
        streak_days=progress.streak_days,
        streak_extended=streak_extended
    )


def daily_goal_progress(progress: Progress, today: date, daily_goal: int) -> Dict:
    """
    Progress toward the daily XP goal.

    Returns:
        {"goal": 100, "earned_today": 40, "completed": False, "progress_percentage": 40.0}
    """
    earned_today = progress.current_day_xp if progress.last_practice_date == today else 0
    percentage = min(1.0, earned_today / max(1, daily_goal)) * 100
    return {
        "goal": daily_goal,
        "earned_today": earned_today,
        "completed": earned_today >= daily_goal,
        "progress_percentage": round(percentage, 1)
    }
