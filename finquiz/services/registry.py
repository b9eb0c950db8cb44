"""Per-learner engine registry owned by the application."""
import logging
from collections import OrderedDict
from typing import Callable, List, Optional
from fastapi import Request
from sqlalchemy.orm import Session
from finquiz.constants import DEFAULT_MAX_CACHED_ENGINES
from finquiz.services.content import ContentGraph
from finquiz.services.level_resolver import LevelTier
from finquiz.services.persistence import load_progress
from finquiz.services.progress_engine import ProgressEngine

logger = logging.getLogger(__name__)


class EngineRegistry:
    """
    Holds one ProgressEngine per learner, least recently used first.

    Each learner's state has a single owner: the engine created here on first
    use, loaded from the database. Request handlers are async and run on the
    event loop thread, so engines are never mutated concurrently.

    Once more than ``max_engines`` are held, the least recently used engines
    are dropped, but only after their progress is saved. An engine whose save
    keeps failing stays cached, so its in-memory progress is never lost.
    An active lesson session of an evicted engine is not kept.

    Args:
        content: Static content graph shared by all engines
        levels: Level table shared by all engines
        sink: Persistence sink handed to each engine
        engine_factory: Override for building engines (tests inject clocks)
        max_engines: Cache size before eviction starts
    """

    def __init__(
        self,
        content: ContentGraph,
        levels: List[LevelTier],
        sink=None,
        engine_factory: Callable[..., ProgressEngine] = ProgressEngine,
        max_engines: int = DEFAULT_MAX_CACHED_ENGINES
    ):
        if max_engines < 1:
            raise ValueError(f"max_engines must be at least 1, got {max_engines}")
        self.content = content
        self.levels = levels
        self.sink = sink
        self.max_engines = max_engines
        self._engine_factory = engine_factory
        self._engines: "OrderedDict[str, ProgressEngine]" = OrderedDict()

    def get(self, db: Session, learner_id: str) -> Optional[ProgressEngine]:
        """
        Return the learner's engine, loading persisted progress on first use.

        Returns:
            ProgressEngine, or None when the learner does not exist
        """
        engine = self._engines.get(learner_id)
        if engine is not None:
            self._engines.move_to_end(learner_id)
            return engine

        progress = load_progress(db, learner_id)
        if progress is None:
            return None
        engine = self._engine_factory(
            learner_id=learner_id,
            content=self.content,
            levels=self.levels,
            progress=progress,
            sink=self.sink
        )
        self._engines[learner_id] = engine
        logger.debug("Engine created", extra={"learner_id": learner_id})
        self._evict(keep=learner_id)
        return engine

    def _evict(self, keep: str) -> None:
        """Drop saved engines, oldest first, until the cache fits."""
        for learner_id in list(self._engines):
            if len(self._engines) <= self.max_engines:
                break
            if learner_id == keep:
                continue
            if self._engines[learner_id].flush():
                del self._engines[learner_id]
                logger.debug("Engine evicted", extra={"learner_id": learner_id})

        if len(self._engines) > self.max_engines:
            logger.warning(
                f"Engine cache holds {len(self._engines)} engines, above {self.max_engines}; "
                f"remaining engines have unsaved progress"
            )

    def discard(self, learner_id: str) -> None:
        """Forget a learner's engine; the next get() reloads from the database."""
        self._engines.pop(learner_id, None)

    def __contains__(self, learner_id: str) -> bool:
        return learner_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)


def get_registry(request: Request) -> EngineRegistry:
    """FastAPI dependency returning the registry built at startup."""
    return request.app.state.registry
