"""Lesson unlock gating and the completion pass bar."""
from dataclasses import dataclass
from fractions import Fraction
from typing import AbstractSet, Sequence
from finquiz.constants import PASS_RATIO
from finquiz.services.errors import InvalidLessonError, UnknownLessonError
from finquiz.services.state import Progress


@dataclass(frozen=True)
class CompletionOutcome:
    """Result of gating one finished attempt."""
    ratio: Fraction
    passed: bool
    perfect: bool
    newly_completed: bool


def score_ratio(lesson_id: str, score: int, total: int) -> Fraction:
    """
    Exact score ratio for a finished attempt.

    Raises:
        InvalidLessonError: total is 0 or score is outside [0, total]
    """
    if total <= 0:
        raise InvalidLessonError(lesson_id, score, total, "lesson has no questions")
    if score < 0 or score > total:
        raise InvalidLessonError(lesson_id, score, total, "score out of range")
    return Fraction(score, total)


def is_unlocked(lesson_id: str, module_lesson_order: Sequence[str], completed_ids: AbstractSet[str]) -> bool:
    """
    Check whether a lesson is accessible.

    Rules:
    - The first lesson of a module is always unlocked
    - Any later lesson is unlocked iff the lesson right before it in the
      same module has been completed

    Args:
        lesson_id: Lesson to check
        module_lesson_order: Ordered lesson ids of the lesson's module
        completed_ids: Completed lesson ids

    Returns:
        True if the lesson can be played

    Raises:
        UnknownLessonError: lesson_id is not in module_lesson_order
    """
    try:
        position = list(module_lesson_order).index(lesson_id)
    except ValueError:
        raise UnknownLessonError(lesson_id) from None

    if position == 0:
        return True
    return module_lesson_order[position - 1] in completed_ids


def mark_complete(progress: Progress, lesson_id: str, score: int, total: int) -> CompletionOutcome:
    """
    Gate a finished attempt into the completion record.

    - ratio >= 75%: lesson added to completed_lesson_ids (set semantics, so
      retrying a completed lesson never duplicates or removes anything)
    - ratio == 100%: perfect_lessons += 1, once per attempt
    - below the bar: progress is left untouched and the lesson can be retried

    Args:
        progress: Learner progress to mutate
        lesson_id: Finished lesson
        score: Correct answers
        total: Questions in the attempt

    Returns:
        CompletionOutcome describing what happened

    Raises:
        InvalidLessonError: total is 0 or score is outside [0, total];
            progress is not modified
    """
    ratio = score_ratio(lesson_id, score, total)
    passed = ratio >= PASS_RATIO
    perfect = ratio == 1

    newly_completed = False
    if passed:
        newly_completed = lesson_id not in progress.completed_lesson_ids
        progress.completed_lesson_ids.add(lesson_id)

    if perfect:
        progress.perfect_lessons += 1

    return CompletionOutcome(
        ratio=ratio,
        passed=passed,
        perfect=perfect,
        newly_completed=newly_completed
    )


def is_module_complete(module_lesson_order: Sequence[str], completed_ids: AbstractSet[str]) -> bool:
    """True when every lesson of a non-empty module is completed."""
    return bool(module_lesson_order) and all(lesson_id in completed_ids for lesson_id in module_lesson_order)
