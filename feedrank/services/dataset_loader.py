"""
Dataset Loader

Loads a dataset folder into the in-memory stores so the engine (and the HTTP
server) can run without external storage. Each dataset must have a
manifest.json, users.json and content.json; interactions.json is optional.

Usage:
    loader = DatasetLoader(datasets_dir)
    datasets = loader.list_datasets()
    dataset = loader.load_dataset("sample")
    print(f"Loaded {len(dataset.content_store)} content items")
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Union

from ..errors import DatasetError
from ..models.content import ensure_candidates
from ..models.interaction import Interaction, ensure_interactions
from ..models.user import UserProfile
from .content_store import InMemoryContentStore
from .interaction_store import InMemoryInteractionStore
from .user_store import InMemoryUserStore

logger = logging.getLogger(__name__)


@dataclass
class DatasetManifest:
    """Parsed manifest.json for a dataset."""
    name: str
    version: str
    description: str
    files: Dict[str, str]

    @classmethod
    def from_dict(cls, data: Dict) -> "DatasetManifest":
        return cls(
            name=data.get("name", ""),
            version=data.get("version", ""),
            description=data.get("description", ""),
            files=data.get("files", {}),
        )


@dataclass
class LoadedDataset:
    """A dataset materialized into in-memory stores."""
    folder_name: str
    path: Path
    manifest: DatasetManifest
    user_store: InMemoryUserStore
    content_store: InMemoryContentStore
    interaction_store: InMemoryInteractionStore


def _read_json_list(path: Path) -> List[Dict[str, Any]]:
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        # Accept {"items": [...]} as well as a bare list
        data = next((v for v in data.values() if isinstance(v, list)), [])
    if not isinstance(data, list):
        raise DatasetError(f"Expected a JSON list in {path}")
    return data


class DatasetLoader:
    """
    Loads datasets from a directory.

    Expected directory structure:
        data/datasets/
        └── sample/
            ├── manifest.json
            ├── users.json
            ├── content.json
            └── interactions.json (optional)
    """

    def __init__(self, datasets_dir: Union[Path, str]):
        self.datasets_dir = Path(datasets_dir)
        self._loaded: Dict[str, LoadedDataset] = {}

    def list_datasets(self) -> List[Dict[str, Any]]:
        """List dataset folders that carry a readable manifest."""
        datasets = []
        if not self.datasets_dir.exists():
            return datasets
        for folder in sorted(self.datasets_dir.iterdir()):
            manifest_path = folder / "manifest.json"
            if not folder.is_dir() or not manifest_path.exists():
                continue
            try:
                with open(manifest_path) as f:
                    manifest = DatasetManifest.from_dict(json.load(f))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("[dataset] MANIFEST_UNREADABLE folder=%s error=%s", folder.name, e)
                continue
            datasets.append({
                "folder_name": folder.name,
                "name": manifest.name or folder.name,
                "version": manifest.version,
                "description": manifest.description,
                "path": str(folder),
            })
        return datasets

    def load_dataset(self, folder_name: str) -> LoadedDataset:
        """
        Load a dataset into fresh in-memory stores.

        Raises:
            DatasetError: If the folder or a required file is missing,
                or a file does not hold a JSON list of records
        """
        if folder_name in self._loaded:
            return self._loaded[folder_name]

        folder_path = self.datasets_dir / folder_name
        if not folder_path.exists():
            raise DatasetError(f"Dataset folder not found: {folder_path}")

        manifest_path = folder_path / "manifest.json"
        if not manifest_path.exists():
            raise DatasetError(f"manifest.json not found in {folder_path}")
        with open(manifest_path) as f:
            manifest = DatasetManifest.from_dict(json.load(f))

        def required(key: str, default: str) -> Path:
            path = folder_path / manifest.files.get(key, default)
            if not path.exists():
                raise DatasetError(f"{path.name} not found in {folder_path}")
            return path

        users = [UserProfile.model_validate(u) for u in _read_json_list(required("users", "users.json"))]
        content = ensure_candidates(_read_json_list(required("content", "content.json")))
        interactions: List[Interaction] = []
        interactions_path = folder_path / manifest.files.get("interactions", "interactions.json")
        if interactions_path.exists():
            interactions = ensure_interactions(_read_json_list(interactions_path))

        interaction_store = InMemoryInteractionStore()
        interaction_store.add_many(interactions)
        loaded = LoadedDataset(
            folder_name=folder_name,
            path=folder_path,
            manifest=manifest,
            user_store=InMemoryUserStore(users),
            content_store=InMemoryContentStore(content),
            interaction_store=interaction_store,
        )
        self._loaded[folder_name] = loaded
        logger.info(
            "[dataset] LOADED name=%s users=%d content=%d interactions=%d",
            folder_name, len(users), len(content), len(interactions),
        )
        return loaded
