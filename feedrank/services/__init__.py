"""External-store contracts and their in-memory implementations."""

from .content_store import CandidateQuery, ContentStore, InMemoryContentStore, matches_query
from .dataset_loader import DatasetLoader, DatasetManifest, LoadedDataset
from .interaction_store import InMemoryInteractionStore, InteractionStore
from .user_store import InMemoryUserStore, UserStore

__all__ = [
    "CandidateQuery",
    "ContentStore",
    "DatasetLoader",
    "DatasetManifest",
    "InMemoryContentStore",
    "InMemoryInteractionStore",
    "InMemoryUserStore",
    "InteractionStore",
    "LoadedDataset",
    "UserStore",
    "matches_query",
]
