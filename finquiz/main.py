"""Main FastAPI application for the FinQuiz progress service."""
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, Depends
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session
from finquiz.routers import user, progress, lessons
from finquiz.db.init_db import init_db
from finquiz.db.database import get_db, SessionLocal
from finquiz.logging_config import setup_logging, get_logger
from finquiz.config import settings
from finquiz.rate_limit import limiter
from finquiz.services.content import load_content_graph
from finquiz.services.level_resolver import load_levels
from finquiz.services.persistence import SqlProgressSink
from finquiz.services.registry import EngineRegistry

# Set up logging on module import
log_level = settings.LOG_LEVEL if settings.LOG_LEVEL else None
setup_logging(log_level)
logger = get_logger(__name__)


def build_registry() -> EngineRegistry:
    """Load the level table and content graph and build the engine registry."""
    db = SessionLocal()
    try:
        levels = load_levels(db)
        content = load_content_graph(db)
    finally:
        db.close()

    return EngineRegistry(
        content=content,
        levels=levels,
        sink=SqlProgressSink(SessionLocal),
        max_engines=settings.MAX_CACHED_ENGINES
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and engine registry on startup.

    This function runs once when the application starts, performing:
    - Database table creation
    - Schema migrations
    - Level table and content seeding
    - Loading the static level table and content graph
    """
    logger.info("Application startup initiated")
    try:
        init_db()
        app.state.registry = build_registry()
        logger.info("Database initialization completed successfully")
    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        raise

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    title="FinQuiz Progress API",
    description="""
    Gamification engine for a finance and consulting quiz app.

    ## Features

    - **Streak Scoring**: 10 points per correct answer, x1.2 for every 5 in a row
    - **Levels**: Analyst I through MD, reached by cumulative points
    - **Lesson Gating**: Lessons unlock in order; 75% completes a lesson
    - **XP**: Lesson rewards scaled by score, with a practice-day streak
    - **Achievements**: Badges for lessons, XP, streaks and perfect runs

    ## Lesson Flow

    1. **Bootstrap**: GET `/api/bootstrap` to get a learner cookie
    2. **Pick a lesson**: GET `/api/modules` for unlock state
    3. **Start**: POST `/api/lessons/{lesson_id}/start`
    4. **Answer**: POST each answer to `/api/lessons/{lesson_id}/answer`
    5. **Finish**: POST `/api/lessons/{lesson_id}/complete` with the score
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_tags=[
        {
            "name": "user",
            "description": "Learner bootstrap and account reset"
        },
        {
            "name": "progress",
            "description": "Points, levels, XP and achievements"
        },
        {
            "name": "lessons",
            "description": "Modules, lesson gating and lesson play"
        },
        {
            "name": "health",
            "description": "Service health and readiness checks"
        }
    ]
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

logger.info("Rate limiting enabled: default 100 requests/minute per IP")

app.include_router(user.router)
app.include_router(progress.router)
app.include_router(lessons.router)


@app.get("/health", tags=["health"])
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint with database verification.

    Returns:
        200 OK: Service is healthy and database is accessible
        503 Service Unavailable: Database connection failed
    """
    timestamp = datetime.utcnow().isoformat() + "Z"

    try:
        db.execute(text("SELECT 1"))
        logger.debug("Health check passed")

        return {
            "status": "healthy",
            "database": "connected",
            "timestamp": timestamp,
            "environment": settings.ENVIRONMENT
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)

        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(e),
                "timestamp": timestamp
            }
        )


@app.get("/readiness", tags=["health"])
async def readiness_check(db: Session = Depends(get_db)):
    """Readiness check for container orchestration.

    Ready once the database answers and the engine registry is loaded.

    Returns:
        200 OK: Service is ready
        503 Service Unavailable: Service is not ready
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "error": str(e)}
        )

    if getattr(app.state, "registry", None) is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "error": "content not loaded"}
        )

    return {"status": "ready", "timestamp": datetime.utcnow().isoformat() + "Z"}
