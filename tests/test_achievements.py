"""Tests for achievement evaluation."""
from finquiz.services.achievements import ACHIEVEMENTS, evaluate_achievements
from finquiz.services.events import AchievementUnlocked
from finquiz.services.state import Progress


class TestEvaluateAchievements:
    """Tests for unlocking achievements."""

    def test_fresh_progress_unlocks_nothing(self, channel):
        assert evaluate_achievements(Progress(), channel) == []
        assert channel.drain() == []

    def test_first_lesson_unlocks_first_deal(self, channel):
        progress = Progress(completed_lesson_ids={"m-1"})

        unlocked = evaluate_achievements(progress, channel)

        assert [a.code for a in unlocked] == ["first_deal"]
        assert progress.achievements == {"first_deal"}
        assert channel.drain() == [AchievementUnlocked(code="first_deal", title="First Deal")]

    def test_not_announced_twice(self, channel):
        progress = Progress(completed_lesson_ids={"m-1"})
        evaluate_achievements(progress, channel)
        channel.drain()

        assert evaluate_achievements(progress, channel) == []
        assert channel.drain() == []

    def test_several_rules_in_catalogue_order(self, channel):
        progress = Progress(
            completed_lesson_ids={f"m-{n}" for n in range(5)},
            xp=600,
            streak_days=3,
            completed_module_ids={"m"}
        )

        unlocked = evaluate_achievements(progress, channel)

        assert [a.code for a in unlocked] == [
            "first_deal", "quick_learner", "rising_star", "early_bird", "module_master"
        ]

    def test_pitch_perfect_needs_five_perfect_runs(self, channel):
        progress = Progress(perfect_lessons=4)
        evaluate_achievements(progress, channel)
        assert "pitch_perfect" not in progress.achievements

        progress.perfect_lessons = 5
        evaluate_achievements(progress, channel)
        assert "pitch_perfect" in progress.achievements

    def test_codes_are_unique(self):
        codes = [a.code for a in ACHIEVEMENTS]
        assert len(codes) == len(set(codes))
