"""Progress and level query endpoints."""
from fastapi import APIRouter, Depends
from finquiz.routers.user import get_learner_engine
from finquiz.services.achievements import ACHIEVEMENTS
from finquiz.services.progress_engine import ProgressEngine
from finquiz.services.registry import EngineRegistry, get_registry

router = APIRouter(prefix="/api", tags=["progress"])


@router.get("/progress")
async def get_progress(engine: ProgressEngine = Depends(get_learner_engine)):
    """
    Get the learner's progress snapshot.

    Returns:
    - points, streaks, level index and progress toward the next level
    - completed lessons and modules, perfect lesson count
    - XP, display level, practice-day streak, daily goal
    - current session counters
    """
    return engine.get_progress_snapshot()


@router.get("/progress/level")
async def get_current_level(engine: ProgressEngine = Depends(get_learner_engine)):
    """Get the learner's current level."""
    level = engine.get_current_level()
    return {"index": engine.progress.current_level_index, "name": level.name, "required_points": level.required_points}


@router.get("/levels")
async def list_levels(registry: EngineRegistry = Depends(get_registry)):
    """Get the level threshold table."""
    return [
        {"index": index, "name": level.name, "required_points": level.required_points}
        for index, level in enumerate(registry.levels)
    ]


@router.get("/achievements")
async def list_achievements(engine: ProgressEngine = Depends(get_learner_engine)):
    """Get the achievement catalogue with the learner's unlocked flags."""
    return [
        {
            "code": achievement.code,
            "title": achievement.title,
            "description": achievement.description,
            "unlocked": achievement.code in engine.progress.achievements
        }
        for achievement in ACHIEVEMENTS
    ]
