"""Learner bootstrap and account reset endpoints."""
import logging
import uuid
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Response, Request
from sqlalchemy.orm import Session
from finquiz.config import settings
from finquiz.constants import COOKIE_NAME, LEARNER_ID_PREFIX
from finquiz.db.database import get_db
from finquiz.db.models import Learner, LearnerProgress
from finquiz.services.persistence import delete_progress
from finquiz.services.progress_engine import ProgressEngine
from finquiz.services.registry import EngineRegistry, get_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["user"])


def get_learner_id_from_cookie(request: Request) -> str:
    """Extract learner ID from cookie."""
    learner_id = request.cookies.get(COOKIE_NAME)
    if not learner_id:
        raise HTTPException(status_code=401, detail="No learner session found")
    return learner_id


def get_learner_engine(
    request: Request,
    db: Session = Depends(get_db),
    registry: EngineRegistry = Depends(get_registry)
) -> ProgressEngine:
    """Resolve the cookie's learner to its progress engine."""
    learner_id = get_learner_id_from_cookie(request)
    engine = registry.get(db, learner_id)
    if engine is None:
        raise HTTPException(status_code=404, detail="Learner not found")
    return engine


def get_or_create_learner(request: Request, response: Response, db: Session) -> str:
    """
    Get or create an anonymous learner based on cookie.

    Args:
        request: FastAPI request
        response: FastAPI response (to set cookie)
        db: Database session

    Returns:
        Learner ID
    """
    learner_id = request.cookies.get(COOKIE_NAME)

    if learner_id:
        learner = db.query(Learner).filter(Learner.id == learner_id).first()
        if learner:
            learner.last_active_at = datetime.utcnow()
            db.commit()
            return learner_id

    learner_id = f"{LEARNER_ID_PREFIX}{uuid.uuid4()}"
    learner = Learner(id=learner_id)
    learner.progress = LearnerProgress(learner_id=learner_id)
    db.add(learner)
    db.commit()
    logger.info("Created learner", extra={"learner_id": learner_id})

    response.set_cookie(
        key=COOKIE_NAME,
        value=learner_id,
        max_age=settings.COOKIE_MAX_AGE,
        httponly=settings.COOKIE_HTTPONLY,
        samesite=settings.COOKIE_SAMESITE,
        secure=settings.COOKIE_SECURE
    )

    return learner_id


@router.get("/bootstrap")
async def bootstrap(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    registry: EngineRegistry = Depends(get_registry)
):
    """
    Bootstrap learner session and return initial data.

    Returns:
    - learner id
    - current level
    - progress snapshot
    """
    learner_id = get_or_create_learner(request, response, db)
    engine = registry.get(db, learner_id)
    level = engine.get_current_level()

    return {
        "learner_id": learner_id,
        "current_level": {"index": engine.progress.current_level_index, "name": level.name, "required_points": level.required_points},
        "progress": engine.get_progress_snapshot()
    }


@router.delete("/progress")
async def reset_progress(
    request: Request,
    db: Session = Depends(get_db),
    registry: EngineRegistry = Depends(get_registry)
):
    """
    Full account reset.

    Deletes the learner's points, streaks, completions, XP and achievements.
    This is the only operation that removes progress.
    """
    learner_id = get_learner_id_from_cookie(request)

    if not delete_progress(db, learner_id):
        raise HTTPException(status_code=404, detail="Learner not found")

    registry.discard(learner_id)
    logger.info("Progress reset", extra={"learner_id": learner_id})

    return {"learner_id": learner_id, "reset": True}
