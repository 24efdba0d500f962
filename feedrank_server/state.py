"""Application state: stores, caches and the feed engine."""

import logging
from typing import Optional

from feedrank.cache.tiers import InMemoryFastTier, RedisFastTier
from feedrank.cache.vector_store import InMemoryVectorStore, JsonVectorStore
from feedrank.services import (
    DatasetLoader,
    InMemoryContentStore,
    InMemoryInteractionStore,
    InMemoryUserStore,
    LoadedDataset,
)
from feedrank.stages.orchestrator import FeedEngine

from .config import ServerConfig, get_config

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(self, config: ServerConfig, engine: Optional[FeedEngine] = None):
        self.config = config
        self.dataset_loader = DatasetLoader(config.datasets_dir)
        self.current_dataset: Optional[LoadedDataset] = None
        self.engine = engine if engine is not None else self._create_engine(config)

    def _create_engine(self, config: ServerConfig) -> FeedEngine:
        if config.dataset:
            self.current_dataset = self.dataset_loader.load_dataset(config.dataset)
            content_store = self.current_dataset.content_store
            interaction_store = self.current_dataset.interaction_store
            user_store = self.current_dataset.user_store
            logger.info("[startup] Stores: dataset %s", config.dataset)
        else:
            content_store = InMemoryContentStore()
            interaction_store = InMemoryInteractionStore()
            user_store = InMemoryUserStore()
            logger.info("[startup] Stores: empty in-memory")

        if config.vectors_dir:
            vector_store = JsonVectorStore(config.vectors_dir)
        else:
            vector_store = InMemoryVectorStore()
        logger.info("[startup] Vector store: %s", type(vector_store).__name__)

        fast_tier = RedisFastTier.from_url(config.redis_url) if config.redis_url else InMemoryFastTier()
        logger.info("[startup] Fast tier: %s", type(fast_tier).__name__)

        return FeedEngine(
            content_store,
            interaction_store,
            user_store,
            config=config.load_ranking_config(),
            vector_store=vector_store,
            fast_tier=fast_tier,
        )

    @property
    def is_loaded(self) -> bool:
        return self.current_dataset is not None


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState(get_config())
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (tests inject engines backed by fixture stores)."""
    global _state
    _state = state
