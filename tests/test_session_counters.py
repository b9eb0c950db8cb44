"""Tests for session counters and the lesson XP award."""
import pytest
from finquiz.services.errors import InvalidLessonError
from finquiz.services.session_counters import SessionCounters, award_xp


class TestAwardXP:
    """Tests for XP scaled by the score ratio."""

    def test_perfect_attempt_earns_full_reward(self):
        assert award_xp(100, 10, 10) == 100

    def test_three_quarters_earns_eighty_seven(self):
        """100 * (0.5 + 0.5 * 0.75) = 87.5, floored."""
        assert award_xp(100, 3, 4) == 87

    def test_zero_score_earns_half(self):
        assert award_xp(120, 0, 4) == 60

    def test_floor_is_exact(self):
        """140 * (0.5 + 0.5 * 1/3) = 93.33..."""
        assert award_xp(140, 1, 3) == 93

    def test_zero_total_rejected(self):
        with pytest.raises(InvalidLessonError):
            award_xp(100, 0, 0, "m-1")


class TestSessionCounters:
    """Tests for per-session counters."""

    def test_record_correct_and_incorrect(self):
        session = SessionCounters()
        session.reset("m-1")

        session.record(True, 10)
        session.record(True, 10)
        session.record(False, 0)
        session.record(True, 10)

        assert session.answered == 4
        assert session.correct == 3
        assert session.current_question_streak == 1
        assert session.points_earned_this_session == 30

    def test_reset_clears_counters(self):
        session = SessionCounters()
        session.reset("m-1")
        session.record(True, 12)

        session.reset("m-2")

        assert session.to_dict() == {
            "lesson_id": "m-2",
            "current_question_streak": 0,
            "points_earned_this_session": 0,
            "answered": 0,
            "correct": 0,
            "answered_question_ids": [],
        }

    def test_answered_question_ids_tracked(self):
        session = SessionCounters()
        session.reset("m-1")

        session.record(True, 10, "m-1-q2")
        session.record(False, 0, "m-1-q1")

        assert session.has_answered("m-1-q1")
        assert not session.has_answered("m-1-q3")
        assert session.to_dict()["answered_question_ids"] == ["m-1-q1", "m-1-q2"]

    def test_reset_forgets_answered_questions(self):
        session = SessionCounters()
        session.reset("m-1")
        session.record(True, 10, "m-1-q1")

        session.reset("m-1")

        assert not session.has_answered("m-1-q1")
