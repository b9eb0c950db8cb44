"""Module, lesson and lesson-play endpoints."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, field_validator
from finquiz.constants import ANSWER_SUBMISSION_RATE_LIMIT, LESSON_COMPLETION_RATE_LIMIT, SESSION_START_RATE_LIMIT
from finquiz.rate_limit import limiter
from finquiz.routers.user import get_learner_engine
from finquiz.services.errors import InvalidLessonError, LessonLockedError, SessionStateError, UnknownLessonError
from finquiz.services.events import event_to_dict
from finquiz.services.progress_engine import ProgressEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["lessons"])


class AnswerSubmission(BaseModel):
    """Request body for answer submission."""
    question_id: str = Field(..., min_length=1, max_length=100, description="Question being answered")
    choice_id: str = Field(..., min_length=1, max_length=100, description="Selected answer choice")

    @field_validator('question_id', 'choice_id')
    @classmethod
    def strip_ids(cls, v):
        """Validate that ids are not empty or whitespace."""
        if not v or v.strip() == '':
            raise ValueError('id cannot be empty')
        return v.strip()


class CompletionSubmission(BaseModel):
    """Request body for finishing a lesson attempt."""
    score: int = Field(..., ge=0, description="Correct answers in the attempt")
    total: int = Field(..., ge=0, description="Questions in the attempt")


def require_unlocked(engine: ProgressEngine, lesson_id: str) -> None:
    """Raise 404 for unknown lessons and 403 for locked ones."""
    try:
        unlocked = engine.is_lesson_unlocked(lesson_id)
    except UnknownLessonError:
        raise HTTPException(status_code=404, detail="Lesson not found")
    if not unlocked:
        raise HTTPException(status_code=403, detail="Lesson is locked")


@router.get("/modules")
async def list_modules(engine: ProgressEngine = Depends(get_learner_engine)):
    """
    List modules with per-lesson unlock state.

    Returns a list of modules, each with ordered lessons flagged as
    unlocked/completed for the current learner.
    """
    completed = engine.progress.completed_lesson_ids

    return [
        {
            "module_id": module.id,
            "title": module.title,
            "subtitle": module.subtitle,
            "completed": module.id in engine.progress.completed_module_ids,
            "lessons": [
                {
                    "lesson_id": lesson.id,
                    "title": lesson.title,
                    "position": lesson.position,
                    "xp_reward": lesson.xp_reward,
                    "question_count": lesson.question_count,
                    "unlocked": engine.is_lesson_unlocked(lesson.id),
                    "completed": lesson.id in completed
                }
                for lesson in module.lessons
            ]
        }
        for module in engine.content.modules
    ]


@router.get("/lessons/{lesson_id}")
async def get_lesson(lesson_id: str, engine: ProgressEngine = Depends(get_learner_engine)):
    """
    Get a lesson's questions.

    Correct answers are not included; they are revealed per answer.
    """
    require_unlocked(engine, lesson_id)
    lesson = engine.content.lesson(lesson_id)

    return {
        "lesson_id": lesson.id,
        "module_id": lesson.module_id,
        "title": lesson.title,
        "xp_reward": lesson.xp_reward,
        "question_count": lesson.question_count,
        "questions": [
            {
                "question_id": question.id,
                "question_number": number,
                "prompt": question.prompt,
                "kind": question.kind,
                "choices": [{"choice_id": choice.id, "text": choice.text} for choice in question.choices]
            }
            for number, question in enumerate(lesson.questions, start=1)
        ]
    }


@router.post("/lessons/{lesson_id}/start")
@limiter.limit(SESSION_START_RATE_LIMIT)
async def start_lesson(
    lesson_id: str,
    request: Request,
    engine: ProgressEngine = Depends(get_learner_engine)
):
    """
    Start a lesson-play session.

    Resets the session streak and session points.
    """
    require_unlocked(engine, lesson_id)

    try:
        session = engine.start_session(lesson_id)
    except LessonLockedError:
        raise HTTPException(status_code=403, detail="Lesson is locked")

    return {"session": session.to_dict()}


@router.post("/lessons/{lesson_id}/answer")
@limiter.limit(ANSWER_SUBMISSION_RATE_LIMIT)
async def submit_answer(
    lesson_id: str,
    answer: AnswerSubmission,
    request: Request,
    engine: ProgressEngine = Depends(get_learner_engine)
):
    """
    Submit an answer in the active session.

    Updates:
    - lifetime streak, best streak, points and level
    - session streak and session points

    Returns:
    - evaluation (is_correct, correct choice, explanation)
    - points awarded and drained events (points, milestones, level-ups)
    - session counters and lifetime totals
    """
    require_unlocked(engine, lesson_id)

    try:
        is_correct, awarded = engine.submit_answer(lesson_id, answer.question_id, answer.choice_id)
    except SessionStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except KeyError:
        raise HTTPException(status_code=404, detail="Question or choice not found")
    except Exception as e:
        logger.error(f"Error recording answer: {e}", exc_info=True,
                     extra={"learner_id": engine.learner_id, "lesson_id": lesson_id})
        raise HTTPException(status_code=500, detail=f"Error recording answer: {str(e)}")

    _, question = engine.content.question(answer.question_id)

    return {
        "question_id": question.id,
        "is_correct": is_correct,
        "correct_choice_id": question.correct_choice_id,
        "selected_choice_id": answer.choice_id,
        "explanation": question.explanation,
        "points_awarded": awarded,
        "events": [event_to_dict(event) for event in engine.drain_events()],
        "session": engine.session.to_dict(),
        "total_points": engine.progress.total_points,
        "current_streak": engine.progress.current_streak,
        "best_streak": engine.progress.best_streak
    }


@router.post("/lessons/{lesson_id}/complete")
@limiter.limit(LESSON_COMPLETION_RATE_LIMIT)
async def complete_lesson(
    lesson_id: str,
    completion: CompletionSubmission,
    request: Request,
    engine: ProgressEngine = Depends(get_learner_engine)
):
    """
    Finish the active lesson session.

    The score comes from the session's own counters; every question must be
    answered first, and the submitted score/total must match them. A score
    of 75% or better completes the lesson and unlocks the next one; XP is
    paid for every finished attempt. The session is closed afterwards.

    Returns:
    - result (passed, perfect, unlocked lesson, XP earned, module completed)
    - drained events
    - progress snapshot
    """
    require_unlocked(engine, lesson_id)

    try:
        score, total = engine.session_score(lesson_id)
    except SessionStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if (completion.score, completion.total) != (score, total):
        raise HTTPException(
            status_code=422,
            detail=f"Score {completion.score}/{completion.total} does not match the session ({score}/{total})"
        )

    try:
        result = engine.complete_session(lesson_id)
    except InvalidLessonError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "result": result.to_dict(),
        "events": [event_to_dict(event) for event in engine.drain_events()],
        "progress": engine.get_progress_snapshot()
    }
