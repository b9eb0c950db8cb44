"""SQLAlchemy models for the FinQuiz progress service."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from finquiz.db.database import Base


class Learner(Base):
    """Anonymous learner tracked by the fq_uid cookie."""
    __tablename__ = "learners"

    id = Column(Text, primary_key=True)  # e.g. "fq_<uuid4>"
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_active_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    progress = relationship("LearnerProgress", back_populates="learner", uselist=False, cascade="all, delete-orphan")
    completed_lessons = relationship("CompletedLesson", back_populates="learner", cascade="all, delete-orphan")
    completed_modules = relationship("CompletedModule", back_populates="learner", cascade="all, delete-orphan")
    achievements = relationship("LearnerAchievement", back_populates="learner", cascade="all, delete-orphan")


class LearnerProgress(Base):
    """Persisted counters of a learner's Progress snapshot."""
    __tablename__ = "learner_progress"

    learner_id = Column(Text, ForeignKey("learners.id"), primary_key=True)
    total_points = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    best_streak = Column(Integer, nullable=False, default=0)
    current_level_index = Column(Integer, nullable=False, default=0)
    perfect_lessons = Column(Integer, nullable=False, default=0)
    xp = Column(Integer, nullable=False, default=0)
    streak_days = Column(Integer, nullable=False, default=0)
    last_practice_date = Column(Date, nullable=True)
    current_day_xp = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("total_points >= 0", name="ck_progress_points"),
        CheckConstraint("best_streak >= current_streak", name="ck_progress_best_streak"),
    )

    learner = relationship("Learner", back_populates="progress")


class CompletedLesson(Base):
    """Completion record entry: a lesson passed at 75% or better."""
    __tablename__ = "completed_lessons"

    learner_id = Column(Text, ForeignKey("learners.id"), primary_key=True)
    lesson_id = Column(Text, primary_key=True)
    completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    learner = relationship("Learner", back_populates="completed_lessons")


class CompletedModule(Base):
    """A module whose lessons are all completed."""
    __tablename__ = "completed_modules"

    learner_id = Column(Text, ForeignKey("learners.id"), primary_key=True)
    module_id = Column(Text, primary_key=True)
    completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    learner = relationship("Learner", back_populates="completed_modules")


class LearnerAchievement(Base):
    """An unlocked achievement."""
    __tablename__ = "learner_achievements"

    learner_id = Column(Text, ForeignKey("learners.id"), primary_key=True)
    code = Column(String(64), primary_key=True)
    unlocked_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    learner = relationship("Learner", back_populates="achievements")


class Level(Base):
    """Level threshold table row."""
    __tablename__ = "levels"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(Text, nullable=False)
    required_points = Column(Integer, unique=True, nullable=False)


class Module(Base):
    """Ordered learning module (e.g. "DCF Fundamentals")."""
    __tablename__ = "modules"

    id = Column(Text, primary_key=True)
    title = Column(Text, nullable=False)
    subtitle = Column(Text, nullable=True)
    position = Column(Integer, nullable=False)

    lessons = relationship("Lesson", back_populates="module", cascade="all, delete-orphan")


class Lesson(Base):
    """Lesson within a module; position defines unlock order."""
    __tablename__ = "lessons"

    id = Column(Text, primary_key=True)
    module_id = Column(Text, ForeignKey("modules.id"), nullable=False)
    title = Column(Text, nullable=False)
    position = Column(Integer, nullable=False)
    xp_reward = Column(Integer, nullable=False, default=100)

    __table_args__ = (
        Index("idx_lesson_module_position", "module_id", "position", unique=True),
    )

    module = relationship("Module", back_populates="lessons")
    questions = relationship("Question", back_populates="lesson", cascade="all, delete-orphan")


class Question(Base):
    """Quiz question within a lesson."""
    __tablename__ = "questions"

    id = Column(Text, primary_key=True)
    lesson_id = Column(Text, ForeignKey("lessons.id"), nullable=False)
    prompt = Column(Text, nullable=False)
    kind = Column(Text, CheckConstraint("kind IN ('single_choice', 'true_false')"), nullable=False)
    explanation = Column(Text, nullable=True)
    position = Column(Integer, nullable=False)

    lesson = relationship("Lesson", back_populates="questions")
    choices = relationship("AnswerChoice", back_populates="question", cascade="all, delete-orphan")


class AnswerChoice(Base):
    """One selectable answer of a question."""
    __tablename__ = "answer_choices"

    id = Column(Text, primary_key=True)
    question_id = Column(Text, ForeignKey("questions.id"), nullable=False)
    text = Column(Text, nullable=False)
    is_correct = Column(Integer, nullable=False, default=0)  # 0 or 1 (SQLite boolean)
    position = Column(Integer, nullable=False)

    question = relationship("Question", back_populates="choices")
