"""Achievement rules evaluated against learner progress."""
from dataclasses import dataclass
from typing import Callable, List
from finquiz.services.events import AchievementUnlocked, EventChannel
from finquiz.services.state import Progress


@dataclass(frozen=True)
class Achievement:
    code: str
    title: str
    description: str
    is_earned: Callable[[Progress], bool]


ACHIEVEMENTS: List[Achievement] = [
    Achievement("first_deal", "First Deal", "Complete 1 lesson",
                lambda p: len(p.completed_lesson_ids) >= 1),
    Achievement("quick_learner", "Quick Learner", "Complete 5 lessons",
                lambda p: len(p.completed_lesson_ids) >= 5),
    Achievement("deal_flow", "Deal Flow", "Complete 15 lessons",
                lambda p: len(p.completed_lesson_ids) >= 15),
    Achievement("rising_star", "Rising Star", "Earn 500 XP",
                lambda p: p.xp >= 500),
    Achievement("knowledge_builder", "Knowledge Builder", "Earn 2500 XP",
                lambda p: p.xp >= 2500),
    Achievement("early_bird", "Early Bird", "Practice 3 days in a row",
                lambda p: p.streak_days >= 3),
    Achievement("week_warrior", "Week Warrior", "Practice 7 days in a row",
                lambda p: p.streak_days >= 7),
    Achievement("pitch_perfect", "Pitch Perfect", "Finish 5 lessons with a perfect score",
                lambda p: p.perfect_lessons >= 5),
    Achievement("module_master", "Module Master", "Complete every lesson in a module",
                lambda p: len(p.completed_module_ids) >= 1),
]
"""Achievement catalogue, in display order."""


def evaluate_achievements(progress: Progress, channel: EventChannel) -> List[Achievement]:
    """
    Unlock every achievement whose rule is now satisfied.

    Unlocks are add-only; an achievement already in progress.achievements is
    never re-announced.

    Args:
        progress: Learner progress to mutate
        channel: Event channel; receives one AchievementUnlocked per unlock

    Returns:
        Newly unlocked achievements
    """
    unlocked = []
    for achievement in ACHIEVEMENTS:
        if achievement.code in progress.achievements:
            continue
        if achievement.is_earned(progress):
            progress.achievements.add(achievement.code)
            channel.publish(AchievementUnlocked(code=achievement.code, title=achievement.title))
            unlocked.append(achievement)
    return unlocked
