"""Progress engine: one learner's gamification state and its operations.

The engine owns a learner's Progress, the current SessionCounters and an
EventChannel. Every mutation goes through its methods, and each checkpoint
(answer recorded, lesson finished, session reset) hands a snapshot to the
persistence sink without letting a sink failure interrupt play.
"""
import logging
from dataclasses import dataclass
from datetime import date
from fractions import Fraction
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from finquiz.config import settings
from finquiz.services.achievements import evaluate_achievements
from finquiz.services.content import ContentGraph
from finquiz.services.errors import LessonLockedError, SessionStateError
from finquiz.services.events import EventChannel, LessonCompleted, ModuleCompleted, PersistenceFailed
from finquiz.services.lesson_gate import is_module_complete, is_unlocked, mark_complete, score_ratio
from finquiz.services.level_resolver import LevelTier, level_progress, validate_levels
from finquiz.services.persistence import PersistenceError
from finquiz.services.session_counters import SessionCounters, award_xp
from finquiz.services.state import Progress
from finquiz.services.streak_scorer import record_answer
from finquiz.services.xp_ledger import apply_xp, daily_goal_progress, display_level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonResult:
    """Outcome of mark_lesson_complete, returned to the UI."""
    lesson_id: str
    score: int
    total: int
    ratio: Fraction
    passed: bool
    perfect: bool
    newly_completed: bool
    unlocked_lesson_id: Optional[str]
    module_completed: bool
    xp_earned: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lesson_id": self.lesson_id,
            "score": self.score,
            "total": self.total,
            "ratio": float(self.ratio),
            "passed": self.passed,
            "perfect": self.perfect,
            "newly_completed": self.newly_completed,
            "unlocked_lesson_id": self.unlocked_lesson_id,
            "module_completed": self.module_completed,
            "xp_earned": self.xp_earned,
        }


class ProgressEngine:
    """
    Gamification rules for a single learner.

    Args:
        learner_id: Learner this engine belongs to
        content: Static content graph
        levels: Ordered level table (validated here)
        progress: Loaded progress; defaults to the zero state
        sink: Object with save(learner_id, snapshot), or None to skip persistence
        clock: Callable returning today's date, for the practice-day streak
        daily_xp_goal: XP target for the daily goal report
    """

    def __init__(
        self,
        learner_id: str,
        content: ContentGraph,
        levels: Sequence[LevelTier],
        progress: Optional[Progress] = None,
        sink=None,
        clock: Callable[[], date] = date.today,
        daily_xp_goal: int = settings.DAILY_XP_GOAL
    ):
        validate_levels(levels)
        self.learner_id = learner_id
        self.content = content
        self.levels = list(levels)
        self.progress = progress if progress is not None else Progress()
        self.session = SessionCounters()
        self.events = EventChannel()
        self._sink = sink
        self._clock = clock
        self._daily_xp_goal = daily_xp_goal
        self._unsaved = False

    # Answer flow

    def start_session(self, lesson_id: str) -> SessionCounters:
        """
        Begin playing a lesson, resetting the session counters.

        Raises:
            UnknownLessonError: lesson is not in the content graph
            LessonLockedError: lesson's predecessor is not completed
        """
        if not self.is_lesson_unlocked(lesson_id):
            raise LessonLockedError(lesson_id)
        self.session.reset(lesson_id)
        logger.debug("Session started", extra={"learner_id": self.learner_id, "lesson_id": lesson_id})
        return self.session

    def reset_session(self) -> None:
        self.session.reset()
        self._persist()

    def record_answer(self, is_correct: bool, question_id: Optional[str] = None) -> int:
        """
        Record one answered question.

        Updates the lifetime streak and points (publishing PointsAwarded,
        StreakMilestone and LevelReached as they occur) and the session
        counters, then checkpoints.

        Args:
            is_correct: Whether the answer was correct
            question_id: Answered question; each may be recorded once per session

        Returns:
            Points awarded for this answer

        Raises:
            SessionStateError: question_id was already answered in this session
        """
        if question_id is not None and self.session.has_answered(question_id):
            raise SessionStateError(self.session.lesson_id or "", f"question {question_id} already answered")

        awarded = record_answer(self.progress, is_correct, self.levels, self.events)
        self.session.record(is_correct, awarded, question_id)
        self._persist()
        return awarded

    def submit_answer(self, lesson_id: str, question_id: str, choice_id: str) -> Tuple[bool, int]:
        """
        Evaluate and record an answer in the active session.

        Args:
            lesson_id: Lesson the session was started for
            question_id: Question being answered
            choice_id: Chosen answer choice

        Returns:
            (is_correct, points awarded)

        Raises:
            SessionStateError: no session for this lesson, or question already answered
            KeyError: question or choice does not belong to the lesson
        """
        if self.session.lesson_id != lesson_id:
            raise SessionStateError(lesson_id, "no active session")

        is_correct = self.content.check_answer(lesson_id, question_id, choice_id)
        awarded = self.record_answer(is_correct, question_id)
        return is_correct, awarded

    def session_score(self, lesson_id: str) -> Tuple[int, int]:
        """
        Score of a fully answered session as (correct, question count).

        Raises:
            SessionStateError: no session for this lesson, or questions unanswered
        """
        if self.session.lesson_id != lesson_id:
            raise SessionStateError(lesson_id, "no active session")

        lesson = self.content.lesson(lesson_id)
        if self.session.answered < lesson.question_count:
            raise SessionStateError(
                lesson_id, f"{self.session.answered} of {lesson.question_count} questions answered"
            )
        return self.session.correct, lesson.question_count

    def complete_session(self, lesson_id: str) -> LessonResult:
        """
        Finish the active session, scoring it from its own counters.

        The session is closed afterwards, so the same run cannot be
        completed twice.

        Raises:
            SessionStateError: no session for this lesson, or questions unanswered
            InvalidLessonError: the lesson has no questions
        """
        score, total = self.session_score(lesson_id)
        result = self.mark_lesson_complete(lesson_id, score, total)
        self.session.reset()
        return result

    def mark_lesson_complete(self, lesson_id: str, score: int, total: int) -> LessonResult:
        """
        Finish a lesson attempt.

        Steps:
        1. Validate the score (InvalidLessonError leaves state untouched)
        2. Award XP scaled by the score ratio, for any finished attempt
        3. Gate completion at 75%, count perfect runs
        4. Mark the module complete when its last lesson is passed
        5. Evaluate achievements and checkpoint

        Args:
            lesson_id: Finished lesson
            score: Correct answers
            total: Questions in the attempt

        Returns:
            LessonResult

        Raises:
            UnknownLessonError: lesson is not in the content graph
            InvalidLessonError: total is 0 or score is outside [0, total]
        """
        lesson = self.content.lesson(lesson_id)
        score_ratio(lesson_id, score, total)

        xp_earned = award_xp(lesson.xp_reward, score, total, lesson_id)
        apply_xp(self.progress, xp_earned, self._clock(), self.events)

        outcome = mark_complete(self.progress, lesson_id, score, total)

        unlocked_lesson_id = None
        if outcome.passed:
            unlocked_lesson_id = self.content.next_lesson_id(lesson_id)

        if outcome.newly_completed:
            self.events.publish(LessonCompleted(lesson_id=lesson_id, unlocked_lesson_id=unlocked_lesson_id))

        module_completed = False
        module = self.content.module(lesson.module_id)
        if (module.id not in self.progress.completed_module_ids
                and is_module_complete(module.lesson_order, self.progress.completed_lesson_ids)):
            self.progress.completed_module_ids.add(module.id)
            self.events.publish(ModuleCompleted(module_id=module.id))
            module_completed = True

        evaluate_achievements(self.progress, self.events)

        logger.info(
            f"Lesson finished: {score}/{total}, passed={outcome.passed}, perfect={outcome.perfect}, xp={xp_earned}",
            extra={"learner_id": self.learner_id, "lesson_id": lesson_id}
        )

        self._persist()

        return LessonResult(
            lesson_id=lesson_id,
            score=score,
            total=total,
            ratio=outcome.ratio,
            passed=outcome.passed,
            perfect=outcome.perfect,
            newly_completed=outcome.newly_completed,
            unlocked_lesson_id=unlocked_lesson_id,
            module_completed=module_completed,
            xp_earned=xp_earned
        )

    # Read-only queries

    def get_current_level(self) -> LevelTier:
        return self.levels[self.progress.current_level_index]

    def is_lesson_unlocked(self, lesson_id: str) -> bool:
        order = self.content.module_lesson_order(lesson_id)
        return is_unlocked(lesson_id, order, self.progress.completed_lesson_ids)

    def get_progress_snapshot(self) -> Dict[str, Any]:
        """Progress plus derived level, XP and session views for the UI."""
        snapshot = self.progress.to_dict()
        snapshot["level"] = level_progress(
            self.progress.total_points, self.levels, self.progress.current_level_index
        )
        snapshot["display_level"] = display_level(self.progress.xp)
        snapshot["daily_goal"] = daily_goal_progress(self.progress, self._clock(), self._daily_xp_goal)
        snapshot["session"] = self.session.to_dict()
        return snapshot

    def drain_events(self) -> List[Any]:
        return self.events.drain()

    # Persistence

    @property
    def has_unsaved_changes(self) -> bool:
        """True when progress changed after the last successful save."""
        return self._unsaved

    def flush(self) -> bool:
        """
        Retry saving unsaved progress.

        Returns:
            True when nothing is left unsaved
        """
        if not self._unsaved or self._sink is None:
            return not self._unsaved
        try:
            self._sink.save(self.learner_id, self.progress.to_dict())
        except PersistenceError as e:
            logger.warning(f"Flush failed: {e}", extra={"learner_id": self.learner_id})
            return False
        self._unsaved = False
        return True

    def _persist(self) -> None:
        """Hand the snapshot to the sink; failures become a PersistenceFailed event."""
        if self._sink is None:
            self._unsaved = True
            return
        try:
            self._sink.save(self.learner_id, self.progress.to_dict())
        except PersistenceError as e:
            self._unsaved = True
            logger.warning(f"Could not persist progress: {e}", extra={"learner_id": self.learner_id})
            self.events.publish(PersistenceFailed(reason=str(e)))
        else:
            self._unsaved = False
