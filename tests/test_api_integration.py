"""Integration tests for API endpoints."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from finquiz.config import settings
from finquiz.main import app
from finquiz.db.database import Base, get_db
from finquiz.db.init_db import seed_content, seed_levels
from finquiz.rate_limit import limiter
from finquiz.services.content import load_content_graph
from finquiz.services.level_resolver import LevelTier, load_levels
from finquiz.services.persistence import SqlProgressSink
from finquiz.services.registry import EngineRegistry

FIRST_LESSON = "accounting-basics-1"


@pytest.fixture(scope="function")
def test_client():
    """Create a test client with in-memory database."""
    # Create test database with thread-safety disabled for testing
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    # Override dependency
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    # Seed levels and content, then build the registry the lifespan would
    db = TestingSessionLocal()
    seed_levels(db)
    seed_content(db)
    app.state.registry = EngineRegistry(
        content=load_content_graph(db),
        levels=load_levels(db),
        sink=SqlProgressSink(TestingSessionLocal)
    )
    db.close()

    limiter.reset()

    # Create test client
    client = TestClient(app)

    yield client

    # Cleanup
    app.dependency_overrides.clear()
    app.state.registry = None
    engine.dispose()


@pytest.fixture
def learner_client(test_client):
    """Test client carrying a bootstrapped learner cookie."""
    test_client.get("/api/bootstrap")
    return test_client


def answer_all(client, lesson_id, correct=4):
    """Start a lesson and answer its four questions, the first ``correct`` of them right."""
    client.post(f"/api/lessons/{lesson_id}/start")
    lesson = client.get(f"/api/lessons/{lesson_id}").json()
    responses = []
    for number, question in enumerate(lesson["questions"]):
        right = app.state.registry.content.question(question["question_id"])[1].correct_choice_id
        wrong = next(c["choice_id"] for c in question["choices"] if c["choice_id"] != right)
        choice_id = right if number < correct else wrong
        responses.append(client.post(
            f"/api/lessons/{lesson_id}/answer",
            json={"question_id": question["question_id"], "choice_id": choice_id}
        ))
    return responses


class TestBootstrapEndpoint:
    """Tests for /api/bootstrap endpoint."""

    def test_bootstrap_creates_new_learner(self, test_client):
        """Bootstrap should create a new learner if none exists."""
        response = test_client.get("/api/bootstrap")

        assert response.status_code == 200
        data = response.json()

        assert data["learner_id"].startswith("fq_")
        assert data["current_level"] == {"index": 0, "name": "Analyst I", "required_points": 0}
        assert data["progress"]["total_points"] == 0
        assert data["progress"]["completed_lesson_ids"] == []
        assert "fq_uid" in response.cookies

    def test_bootstrap_returns_existing_learner(self, test_client):
        """Bootstrap should recognize an existing learner by cookie."""
        learner_id_1 = test_client.get("/api/bootstrap").json()["learner_id"]
        learner_id_2 = test_client.get("/api/bootstrap").json()["learner_id"]

        assert learner_id_1 == learner_id_2

    def test_requests_without_cookie_rejected(self, test_client):
        response = test_client.get("/api/progress")

        assert response.status_code == 401


class TestLevelsAndModules:
    """Tests for level table and module listing."""

    def test_levels(self, test_client):
        response = test_client.get("/api/levels")

        assert response.status_code == 200
        names = [level["name"] for level in response.json()]
        assert names == ["Analyst I", "Analyst II", "Senior Analyst", "Associate", "VP", "Director", "MD"]

    def test_modules_show_only_first_lessons_unlocked(self, learner_client):
        response = learner_client.get("/api/modules")

        assert response.status_code == 200
        for module in response.json():
            assert [lesson["unlocked"] for lesson in module["lessons"]] == [True, False, False, False]

    def test_lesson_hides_correct_answers(self, learner_client):
        response = learner_client.get(f"/api/lessons/{FIRST_LESSON}")

        assert response.status_code == 200
        data = response.json()
        assert data["question_count"] == 4
        for question in data["questions"]:
            for choice in question["choices"]:
                assert set(choice) == {"choice_id", "text"}

    def test_locked_lesson_forbidden(self, learner_client):
        assert learner_client.get("/api/lessons/accounting-basics-2").status_code == 403

    def test_unknown_lesson_not_found(self, learner_client):
        assert learner_client.get("/api/lessons/no-such-lesson").status_code == 404


class TestLessonPlay:
    """Tests for the start/answer/complete flow."""

    def test_answer_without_session_conflicts(self, learner_client):
        response = learner_client.post(
            f"/api/lessons/{FIRST_LESSON}/answer",
            json={"question_id": f"{FIRST_LESSON}-q1", "choice_id": f"{FIRST_LESSON}-q1-a"}
        )

        assert response.status_code == 409

    def test_correct_answer_awards_points(self, learner_client):
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/start")

        response = learner_client.post(
            f"/api/lessons/{FIRST_LESSON}/answer",
            json={"question_id": f"{FIRST_LESSON}-q1", "choice_id": f"{FIRST_LESSON}-q1-a"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_correct"] is True
        assert data["points_awarded"] == 10
        assert data["total_points"] == 10
        assert data["current_streak"] == 1
        assert data["session"]["points_earned_this_session"] == 10
        assert data["events"] == [{"amount": 10, "kind": "points_awarded"}]

    def test_incorrect_answer_reveals_correct_choice(self, learner_client):
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/start")

        response = learner_client.post(
            f"/api/lessons/{FIRST_LESSON}/answer",
            json={"question_id": f"{FIRST_LESSON}-q1", "choice_id": f"{FIRST_LESSON}-q1-b"}
        )

        data = response.json()
        assert data["is_correct"] is False
        assert data["correct_choice_id"] == f"{FIRST_LESSON}-q1-a"
        assert data["points_awarded"] == 0
        assert data["explanation"]

    def test_foreign_question_not_found(self, learner_client):
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/start")

        response = learner_client.post(
            f"/api/lessons/{FIRST_LESSON}/answer",
            json={"question_id": "dcf-fundamentals-1-q1", "choice_id": "dcf-fundamentals-1-q1-a"}
        )

        assert response.status_code == 404

    def test_blank_choice_rejected(self, learner_client):
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/start")

        response = learner_client.post(
            f"/api/lessons/{FIRST_LESSON}/answer",
            json={"question_id": f"{FIRST_LESSON}-q1", "choice_id": "   "}
        )

        assert response.status_code == 422

    def test_perfect_lesson_unlocks_next(self, learner_client):
        answer_all(learner_client, FIRST_LESSON)

        response = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})

        assert response.status_code == 200
        data = response.json()
        assert data["result"]["passed"] is True
        assert data["result"]["perfect"] is True
        assert data["result"]["unlocked_lesson_id"] == "accounting-basics-2"
        assert data["result"]["xp_earned"] == 100
        assert [event["kind"] for event in data["events"]] == [
            "xp_awarded", "lesson_completed", "achievement_unlocked"
        ]
        assert data["progress"]["total_points"] == 40
        assert data["progress"]["xp"] == 100

        assert learner_client.get("/api/lessons/accounting-basics-2").status_code == 200

    def test_failed_lesson_stays_locked(self, learner_client):
        answer_all(learner_client, FIRST_LESSON, correct=2)

        response = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 2, "total": 4})

        data = response.json()
        assert data["result"]["passed"] is False
        assert data["result"]["xp_earned"] == 75
        assert learner_client.get("/api/lessons/accounting-basics-2").status_code == 403

    def test_invalid_score_rejected(self, learner_client):
        answer_all(learner_client, FIRST_LESSON)

        response = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 5, "total": 4})

        assert response.status_code == 422

    def test_zero_total_rejected(self, learner_client):
        answer_all(learner_client, FIRST_LESSON)

        response = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 0, "total": 0})

        assert response.status_code == 422

    def test_inflated_score_rejected(self, learner_client):
        """A perfect score claimed for a failed run earns nothing."""
        answer_all(learner_client, FIRST_LESSON, correct=1)

        response = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})

        assert response.status_code == 422
        data = learner_client.get("/api/progress").json()
        assert data["xp"] == 0
        assert data["completed_lesson_ids"] == []

    def test_forged_ratio_rejected(self, learner_client):
        answer_all(learner_client, FIRST_LESSON, correct=1)

        response = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 1, "total": 1})

        assert response.status_code == 422
        assert learner_client.get("/api/lessons/accounting-basics-2").status_code == 403

    def test_complete_without_session_conflicts(self, learner_client):
        response = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})

        assert response.status_code == 409
        assert learner_client.get("/api/progress").json()["xp"] == 0

    def test_complete_with_unanswered_questions_conflicts(self, learner_client):
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/start")
        learner_client.post(
            f"/api/lessons/{FIRST_LESSON}/answer",
            json={"question_id": f"{FIRST_LESSON}-q1", "choice_id": f"{FIRST_LESSON}-q1-a"}
        )

        response = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 1, "total": 1})

        assert response.status_code == 409

    def test_completion_closes_session(self, learner_client):
        answer_all(learner_client, FIRST_LESSON)
        first = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})

        second = learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})

        assert first.status_code == 200
        assert second.status_code == 409
        assert learner_client.get("/api/progress").json()["xp"] == 100

    def test_repeated_answer_conflicts(self, learner_client):
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/start")
        body = {"question_id": f"{FIRST_LESSON}-q1", "choice_id": f"{FIRST_LESSON}-q1-a"}
        first = learner_client.post(f"/api/lessons/{FIRST_LESSON}/answer", json=body)

        responses = [learner_client.post(f"/api/lessons/{FIRST_LESSON}/answer", json=body) for _ in range(3)]

        assert first.status_code == 200
        assert [r.status_code for r in responses] == [409, 409, 409]
        data = learner_client.get("/api/progress").json()
        assert data["total_points"] == 10
        assert data["current_streak"] == 1
        assert data["session"]["answered"] == 1

    def test_answer_after_all_questions_conflicts(self, learner_client):
        answer_all(learner_client, FIRST_LESSON)

        response = learner_client.post(
            f"/api/lessons/{FIRST_LESSON}/answer",
            json={"question_id": f"{FIRST_LESSON}-q4", "choice_id": f"{FIRST_LESSON}-q4-a"}
        )

        assert response.status_code == 409
        assert learner_client.get("/api/progress").json()["total_points"] == 40

    def test_completion_rate_limited(self, learner_client):
        responses = [
            learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})
            for _ in range(21)
        ]

        assert [r.status_code for r in responses[:20]] == [409] * 20
        assert responses[20].status_code == 429

    def test_complete_locked_lesson_forbidden(self, learner_client):
        response = learner_client.post("/api/lessons/accounting-basics-3/complete", json={"score": 4, "total": 4})

        assert response.status_code == 403


class TestProgressEndpoints:
    """Tests for progress queries and reset."""

    def test_progress_persists_across_engine_reload(self, learner_client):
        answer_all(learner_client, FIRST_LESSON)
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})

        app.state.registry.discard(learner_client.cookies["fq_uid"])
        data = learner_client.get("/api/progress").json()

        assert data["completed_lesson_ids"] == [FIRST_LESSON]
        assert data["total_points"] == 40
        assert data["best_streak"] == 4
        assert data["xp"] == 100
        assert data["achievements"] == ["first_deal"]

    def test_current_level(self, learner_client):
        response = learner_client.get("/api/progress/level")

        assert response.json() == {"index": 0, "name": "Analyst I", "required_points": 0}

    def test_level_index_is_table_position(self, learner_client):
        """Level row ids need not match their position in the table."""
        registry = app.state.registry
        registry.levels = [
            LevelTier(id=tier.id + 100, name=tier.name, required_points=tier.required_points)
            for tier in registry.levels
        ]
        learner_id = learner_client.cookies["fq_uid"]
        registry.discard(learner_id)
        learner_client.get("/api/progress")
        engine = registry.get(None, learner_id)
        engine.progress.total_points = 700
        engine.progress.current_level_index = 2

        level = learner_client.get("/api/progress/level").json()
        bootstrap = learner_client.get("/api/bootstrap").json()

        assert level == {"index": 2, "name": "Senior Analyst", "required_points": 600}
        assert bootstrap["current_level"] == level

    def test_achievement_catalogue(self, learner_client):
        answer_all(learner_client, FIRST_LESSON)
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})

        achievements = {a["code"]: a["unlocked"] for a in learner_client.get("/api/achievements").json()}

        assert achievements["first_deal"] is True
        assert achievements["module_master"] is False

    def test_reset_clears_progress(self, learner_client):
        answer_all(learner_client, FIRST_LESSON)
        learner_client.post(f"/api/lessons/{FIRST_LESSON}/complete", json={"score": 4, "total": 4})

        response = learner_client.delete("/api/progress")

        assert response.status_code == 200
        assert response.json()["reset"] is True

        data = learner_client.get("/api/progress").json()
        assert data["total_points"] == 0
        assert data["completed_lesson_ids"] == []
        assert data["achievements"] == []


class TestHealthEndpoints:
    """Tests for health and readiness checks."""

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness(self, test_client):
        response = test_client.get("/readiness")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestAppConfiguration:
    """Tests for application wiring."""

    def test_no_session_middleware(self):
        """Learners are identified by cookie only."""
        assert "SessionMiddleware" not in [m.cls.__name__ for m in app.user_middleware]

    def test_settings_drop_unused_secret(self):
        assert not hasattr(settings, "SECRET_KEY")
        assert settings.MAX_CACHED_ENGINES >= 1
