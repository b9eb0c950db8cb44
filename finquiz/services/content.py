"""Immutable content graph: ordered modules -> lessons -> questions.

Loaded once at startup from the content tables and never mutated by the
engine. Validation happens here so gameplay code can treat the graph as
trusted.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload
from finquiz.db.models import Lesson, Module, Question
from finquiz.services.errors import UnknownLessonError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChoiceInfo:
    id: str
    text: str
    is_correct: bool


@dataclass(frozen=True)
class QuestionInfo:
    id: str
    prompt: str
    kind: str
    choices: Tuple[ChoiceInfo, ...]
    explanation: str

    @property
    def correct_choice_id(self) -> str:
        return next(choice.id for choice in self.choices if choice.is_correct)


@dataclass(frozen=True)
class LessonInfo:
    id: str
    title: str
    module_id: str
    position: int
    xp_reward: int
    questions: Tuple[QuestionInfo, ...]

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class ModuleInfo:
    id: str
    title: str
    subtitle: str
    lessons: Tuple[LessonInfo, ...]

    @property
    def lesson_order(self) -> List[str]:
        return [lesson.id for lesson in self.lessons]


class ContentGraph:
    """Lookup structure over the static modules and lessons."""

    def __init__(self, modules: List[ModuleInfo]):
        self.modules: Tuple[ModuleInfo, ...] = tuple(modules)
        self._lessons: Dict[str, LessonInfo] = {}
        self._modules: Dict[str, ModuleInfo] = {}
        self._questions: Dict[str, Tuple[LessonInfo, QuestionInfo]] = {}

        for module in self.modules:
            if module.id in self._modules:
                raise ValueError(f"Duplicate module id: {module.id}")
            self._modules[module.id] = module

            for lesson in module.lessons:
                if lesson.id in self._lessons:
                    raise ValueError(f"Duplicate lesson id: {lesson.id}")
                if lesson.module_id != module.id:
                    raise ValueError(f"Lesson {lesson.id} is listed under module {module.id}")
                self._lessons[lesson.id] = lesson

                for question in lesson.questions:
                    correct = [choice for choice in question.choices if choice.is_correct]
                    if len(correct) != 1:
                        raise ValueError(
                            f"Question {question.id} must have exactly one correct choice"
                        )
                    self._questions[question.id] = (lesson, question)

    def lesson(self, lesson_id: str) -> LessonInfo:
        """Return a lesson or raise UnknownLessonError."""
        try:
            return self._lessons[lesson_id]
        except KeyError:
            raise UnknownLessonError(lesson_id) from None

    def module(self, module_id: str) -> ModuleInfo:
        return self._modules[module_id]

    def module_for(self, lesson_id: str) -> ModuleInfo:
        return self._modules[self.lesson(lesson_id).module_id]

    def module_lesson_order(self, lesson_id: str) -> List[str]:
        """Ordered lesson ids of the module that contains ``lesson_id``."""
        return self.module_for(lesson_id).lesson_order

    def next_lesson_id(self, lesson_id: str) -> Optional[str]:
        """Id of the lesson that follows ``lesson_id`` in its module, if any."""
        order = self.module_lesson_order(lesson_id)
        position = order.index(lesson_id)
        if position + 1 < len(order):
            return order[position + 1]
        return None

    def question(self, question_id: str) -> Tuple[LessonInfo, QuestionInfo]:
        return self._questions[question_id]

    def check_answer(self, lesson_id: str, question_id: str, choice_id: str) -> bool:
        """
        Evaluate a submitted choice.

        Args:
            lesson_id: Lesson the learner is playing
            question_id: Question being answered
            choice_id: Chosen answer choice

        Returns:
            True when the choice is the question's correct choice

        Raises:
            UnknownLessonError: lesson id is not in the graph
            KeyError: question does not belong to the lesson, or choice
                does not belong to the question
        """
        lesson = self.lesson(lesson_id)
        owner, question = self._questions[question_id]
        if owner.id != lesson.id:
            raise KeyError(question_id)
        if choice_id not in {choice.id for choice in question.choices}:
            raise KeyError(choice_id)
        return question.correct_choice_id == choice_id

    def __contains__(self, lesson_id: str) -> bool:
        return lesson_id in self._lessons

    def __len__(self) -> int:
        return len(self._lessons)


def load_content_graph(db: Session) -> ContentGraph:
    """
    Build the content graph from the content tables.

    Args:
        db: Database session

    Returns:
        Validated ContentGraph

    Raises:
        ValueError: content violates a structural rule
    """
    modules = db.query(Module).options(
        selectinload(Module.lessons).selectinload(Lesson.questions).selectinload(Question.choices)
    ).order_by(Module.position).all()

    graph = ContentGraph([
        ModuleInfo(
            id=module.id,
            title=module.title,
            subtitle=module.subtitle or "",
            lessons=tuple(
                LessonInfo(
                    id=lesson.id,
                    title=lesson.title,
                    module_id=module.id,
                    position=index,
                    xp_reward=lesson.xp_reward,
                    questions=tuple(
                        QuestionInfo(
                            id=question.id,
                            prompt=question.prompt,
                            kind=question.kind,
                            choices=tuple(
                                ChoiceInfo(id=choice.id, text=choice.text, is_correct=bool(choice.is_correct))
                                for choice in sorted(question.choices, key=lambda c: c.position)
                            ),
                            explanation=question.explanation or "",
                        )
                        for question in sorted(lesson.questions, key=lambda q: q.position)
                    ),
                )
                for index, lesson in enumerate(sorted(module.lessons, key=lambda item: item.position))
            ),
        )
        for module in modules
    ])

    logger.info(f"Loaded content graph: {len(graph.modules)} modules, {len(graph)} lessons")
    return graph
