"""Pytest fixtures for testing."""
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from finquiz.db.database import Base
from finquiz.db.init_db import seed_content, seed_levels
from finquiz.db.models import Learner, LearnerProgress
from finquiz.services.content import ChoiceInfo, ContentGraph, LessonInfo, ModuleInfo, QuestionInfo, load_content_graph
from finquiz.services.events import EventChannel
from finquiz.services.level_resolver import LevelTier, load_levels


class FixedClock:
    """Callable clock returning a settable date."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


def make_question(question_id: str) -> QuestionInfo:
    return QuestionInfo(
        id=question_id,
        prompt=f"Prompt {question_id}",
        kind="single_choice",
        choices=(
            ChoiceInfo(id=f"{question_id}-a", text="Right", is_correct=True),
            ChoiceInfo(id=f"{question_id}-b", text="Wrong", is_correct=False),
        ),
        explanation=""
    )


def make_module(module_id: str, lesson_count: int = 4, question_count: int = 4, xp_reward: int = 100) -> ModuleInfo:
    """Build a module of ``lesson_count`` lessons named <module_id>-1..N."""
    lessons = []
    for position in range(lesson_count):
        lesson_id = f"{module_id}-{position + 1}"
        lessons.append(LessonInfo(
            id=lesson_id,
            title=f"Lesson {position + 1}",
            module_id=module_id,
            position=position,
            xp_reward=xp_reward,
            questions=tuple(make_question(f"{lesson_id}-q{n + 1}") for n in range(question_count))
        ))
    return ModuleInfo(id=module_id, title=module_id.title(), subtitle="", lessons=tuple(lessons))


@pytest.fixture
def default_levels():
    """The default seven-level table."""
    return [
        LevelTier(id=0, name="Analyst I", required_points=0),
        LevelTier(id=1, name="Analyst II", required_points=200),
        LevelTier(id=2, name="Senior Analyst", required_points=600),
        LevelTier(id=3, name="Associate", required_points=1200),
        LevelTier(id=4, name="VP", required_points=2400),
        LevelTier(id=5, name="Director", required_points=4000),
        LevelTier(id=6, name="MD", required_points=6500),
    ]


@pytest.fixture
def content_graph():
    """Two four-lesson modules ("alpha" and "beta"), four questions per lesson."""
    return ContentGraph([make_module("alpha"), make_module("beta")])


@pytest.fixture
def channel():
    return EventChannel()


@pytest.fixture
def clock():
    return FixedClock(date(2026, 3, 2))


@pytest.fixture(scope="function")
def session_factory():
    """Session factory bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db(session_factory):
    """Create a seeded test database for each test."""
    db = session_factory()

    seed_levels(db)
    seed_content(db)

    yield db

    db.close()


@pytest.fixture
def seeded_levels(test_db):
    return load_levels(test_db)


@pytest.fixture
def seeded_content(test_db):
    return load_content_graph(test_db)


@pytest.fixture
def test_learner(test_db):
    """Create a test learner with an empty progress row."""
    learner = Learner(id="fq_test_learner")
    learner.progress = LearnerProgress(learner_id=learner.id)
    test_db.add(learner)
    test_db.commit()
    return learner
