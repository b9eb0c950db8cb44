"""Per-session feedback counters and the lesson XP award."""
from dataclasses import dataclass, field
from typing import Optional, Set
from finquiz.constants import MIN_XP_PAYOUT_RATIO
from finquiz.services.lesson_gate import score_ratio


@dataclass
class SessionCounters:
    """
    Counters for one lesson-play session.

    Kept apart from the lifetime streak and points so an abandoned session
    leaves no trace in them. Re-initialized by reset() at session start.
    """
    lesson_id: Optional[str] = None
    current_question_streak: int = 0
    points_earned_this_session: int = 0
    answered: int = 0
    correct: int = 0
    answered_question_ids: Set[str] = field(default_factory=set)

    def reset(self, lesson_id: Optional[str] = None) -> None:
        self.lesson_id = lesson_id
        self.current_question_streak = 0
        self.points_earned_this_session = 0
        self.answered = 0
        self.correct = 0
        self.answered_question_ids = set()

    def has_answered(self, question_id: str) -> bool:
        return question_id in self.answered_question_ids

    def record(self, is_correct: bool, awarded: int, question_id: Optional[str] = None) -> None:
        """Fold one answer into the session counters."""
        self.answered += 1
        if question_id is not None:
            self.answered_question_ids.add(question_id)
        if is_correct:
            self.correct += 1
            self.current_question_streak += 1
            self.points_earned_this_session += awarded
        else:
            self.current_question_streak = 0

    def to_dict(self) -> dict:
        return {
            "lesson_id": self.lesson_id,
            "current_question_streak": self.current_question_streak,
            "points_earned_this_session": self.points_earned_this_session,
            "answered": self.answered,
            "correct": self.correct,
            "answered_question_ids": sorted(self.answered_question_ids),
        }


def award_xp(xp_reward: int, score: int, total: int, lesson_id: str = "") -> int:
    """
    Calculate XP for a finished lesson attempt.

    Formula:
    - xp = floor(xp_reward * (0.5 + 0.5 * score / total))
    - any finished attempt earns at least half the reward, a perfect one all of it

    Args:
        xp_reward: Lesson's full XP reward
        score: Correct answers
        total: Questions in the attempt
        lesson_id: Used only in the error message

    Returns:
        XP earned

    Raises:
        InvalidLessonError: total is 0 or score is outside [0, total]
    """
    ratio = score_ratio(lesson_id, score, total)
    payout = MIN_XP_PAYOUT_RATIO + (1 - MIN_XP_PAYOUT_RATIO) * ratio
    return int(xp_reward * payout)
