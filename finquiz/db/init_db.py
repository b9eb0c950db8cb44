"""Database initialization, level table and content seeding with auto-migration."""
import logging
from typing import Dict, List
from sqlalchemy import inspect, text
from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError
from finquiz.constants import DEFAULT_LEVELS
from finquiz.db.content_bank import FINANCE_MODULES
from finquiz.db.database import engine, SessionLocal, Base
from finquiz.db.models import AnswerChoice, Lesson, Level, Module, Question

logger = logging.getLogger(__name__)

TRUE_FALSE_CHOICES = ["True", "False"]


def seed_levels(db: Session, levels: List[Dict] = DEFAULT_LEVELS) -> None:
    """Seed the levels table with the default thresholds."""
    existing_count = db.query(Level).count()
    if existing_count > 0:
        logger.info(f"Levels table already contains {existing_count} entries. Skipping seed.")
        return

    logger.info("Seeding level table...")
    for level_data in levels:
        db.add(Level(**level_data))

    db.commit()
    logger.info(f"Successfully seeded {len(levels)} levels.")


def build_module(module_data: Dict, position: int) -> Module:
    """Build a Module with its lessons, questions and choices from seed data."""
    module = Module(
        id=module_data["id"],
        title=module_data["title"],
        subtitle=module_data.get("subtitle"),
        position=position
    )

    for lesson_position, lesson_data in enumerate(module_data["lessons"]):
        lesson = Lesson(
            id=lesson_data["id"],
            title=lesson_data["title"],
            position=lesson_position,
            xp_reward=lesson_data.get("xp_reward", 100)
        )

        for question_position, (prompt, choices, correct_index, explanation) in enumerate(lesson_data["questions"]):
            question_id = f"{lesson.id}-q{question_position + 1}"
            question = Question(
                id=question_id,
                prompt=prompt,
                kind="true_false" if choices == TRUE_FALSE_CHOICES else "single_choice",
                explanation=explanation,
                position=question_position
            )
            for choice_position, choice_text in enumerate(choices):
                question.choices.append(AnswerChoice(
                    id=f"{question_id}-{chr(ord('a') + choice_position)}",
                    text=choice_text,
                    is_correct=1 if choice_position == correct_index else 0,
                    position=choice_position
                ))
            lesson.questions.append(question)

        module.lessons.append(lesson)

    return module


def seed_content(db: Session, modules: List[Dict] = FINANCE_MODULES) -> None:
    """Seed modules, lessons and questions from the content bank."""
    existing_count = db.query(Module).count()
    if existing_count > 0:
        logger.info(f"Modules table already contains {existing_count} entries. Skipping seed.")
        return

    logger.info("Seeding content bank...")
    for position, module_data in enumerate(modules):
        db.add(build_module(module_data, position))

    db.commit()
    logger.info(f"Successfully seeded {len(modules)} modules.")


def check_column_exists(inspector, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table."""
    try:
        columns = [col['name'] for col in inspector.get_columns(table_name)]
        return column_name in columns
    except Exception as e:
        logger.warning(f"Error checking column {column_name} in {table_name}: {e}")
        return False


def apply_schema_migrations(db: Session) -> None:
    """
    Apply additive schema migrations automatically on startup.

    Databases created before the XP ledger existed lack its columns on
    learner_progress; they are added with zero defaults. All operations are
    idempotent.
    """
    inspector = inspect(db.get_bind())
    existing_tables = inspector.get_table_names()

    if not existing_tables:
        logger.info("No existing tables found. Schema will be created from scratch.")
        return

    logger.info("Checking for necessary schema migrations...")
    migrations_applied = []

    if 'learner_progress' in existing_tables:
        ledger_columns = [
            ('perfect_lessons', 'INTEGER NOT NULL DEFAULT 0'),
            ('xp', 'INTEGER NOT NULL DEFAULT 0'),
            ('streak_days', 'INTEGER NOT NULL DEFAULT 0'),
            ('last_practice_date', 'DATE'),
            ('current_day_xp', 'INTEGER NOT NULL DEFAULT 0'),
        ]

        for col_name, col_def in ledger_columns:
            if not check_column_exists(inspector, 'learner_progress', col_name):
                try:
                    logger.info(f"Adding column {col_name} to learner_progress table...")
                    db.execute(text(f"ALTER TABLE learner_progress ADD COLUMN {col_name} {col_def}"))
                    migrations_applied.append(f"Added column learner_progress.{col_name}")
                except OperationalError as e:
                    logger.warning(f"Could not add column {col_name}: {e}")

    if migrations_applied:
        try:
            db.commit()
            logger.info(f"Applied {len(migrations_applied)} schema migrations:")
            for migration in migrations_applied:
                logger.info(f"  - {migration}")
        except Exception as e:
            db.rollback()
            logger.error(f"Error committing migrations: {e}")
            raise
    else:
        logger.info("No schema migrations needed. Database is up to date.")


def init_db() -> None:
    """
    Initialize database: create tables, apply migrations, and seed data.

    This function:
    1. Applies any necessary schema migrations to existing tables
    2. Creates missing tables from SQLAlchemy models
    3. Seeds the level table and the content bank

    Safe to call multiple times - all operations are idempotent.
    """
    logger.info("Initializing database...")

    db = SessionLocal()
    try:
        apply_schema_migrations(db)

        logger.info("Creating database tables from models...")
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created/verified successfully.")

        seed_levels(db)
        seed_content(db)

        logger.info("Database initialization complete.")
    except Exception as e:
        logger.error(f"Error during database initialization: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    init_db()
    print("Database initialization complete.")
