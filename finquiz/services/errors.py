"""Exceptions raised by the progress engine."""


class ProgressEngineError(Exception):
    """Base class for progress engine errors."""


class UnknownLessonError(ProgressEngineError, LookupError):
    """A lesson id is not part of the loaded content graph.

    The content graph is static and validated at load time, so this always
    indicates a caller bug rather than a recoverable condition.
    """

    def __init__(self, lesson_id: str):
        super().__init__(f"Unknown lesson: {lesson_id}")
        self.lesson_id = lesson_id


class InvalidLessonError(ProgressEngineError, ValueError):
    """A finished attempt cannot be scored (zero questions or bad score)."""

    def __init__(self, lesson_id: str, score: int, total: int, reason: str):
        super().__init__(f"Cannot complete lesson {lesson_id} with {score}/{total}: {reason}")
        self.lesson_id = lesson_id
        self.score = score
        self.total = total


class LessonLockedError(ProgressEngineError):
    """A session was requested for a lesson whose predecessor is not completed."""

    def __init__(self, lesson_id: str):
        super().__init__(f"Lesson is locked: {lesson_id}")
        self.lesson_id = lesson_id


class SessionStateError(ProgressEngineError):
    """An answer or completion does not fit the active lesson session.

    Raised for answers outside the session's lesson, repeated answers to the
    same question, and completions requested before every question was
    answered.
    """

    def __init__(self, lesson_id: str, reason: str):
        super().__init__(f"Session for lesson {lesson_id}: {reason}")
        self.lesson_id = lesson_id
        self.reason = reason
