"""
Durable tier for interest vectors.

One record per user, last writer wins. JsonVectorStore keeps one JSON document
per user under a directory so vectors survive restarts without a database.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union
from urllib.parse import quote, unquote

from ..models.vector import InterestVector

logger = logging.getLogger(__name__)


class VectorStore(Protocol):
    """Protocol for durable vector persistence."""

    async def get(self, user_id: str) -> Optional[InterestVector]:
        ...

    async def put(self, user_id: str, vector: InterestVector) -> None:
        ...

    async def delete(self, user_id: str) -> None:
        ...

    async def user_ids(self) -> List[str]:
        """Every user with a stored vector."""
        ...


class InMemoryVectorStore:
    """Durable-tier stand-in held in process memory."""

    def __init__(self):
        self._vectors: Dict[str, InterestVector] = {}

    async def get(self, user_id: str) -> Optional[InterestVector]:
        return self._vectors.get(user_id)

    async def put(self, user_id: str, vector: InterestVector) -> None:
        self._vectors[user_id] = vector

    async def delete(self, user_id: str) -> None:
        self._vectors.pop(user_id, None)

    async def user_ids(self) -> List[str]:
        return list(self._vectors)

    def __len__(self) -> int:
        return len(self._vectors)


class JsonVectorStore:
    """
    Vector store backed by a directory of JSON files (data/vectors/<quoted user_id>.json).

    File names percent-encode the user id, so distinct ids never share a file.
    """

    def __init__(self, directory: Union[Path, str]):
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, user_id: str) -> Path:
        return self._dir / f"{quote(user_id, safe='')}.json"

    async def get(self, user_id: str) -> Optional[InterestVector]:
        path = self._path(user_id)
        if not path.exists():
            return None
        try:
            with open(path) as f:
                return InterestVector.model_validate(json.load(f))
        except (json.JSONDecodeError, OSError, ValueError) as e:
            logger.warning("[vector_store] READ_FAILED user=%s error=%s", user_id, e)
            return None

    async def put(self, user_id: str, vector: InterestVector) -> None:
        path = self._path(user_id)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w") as f:
            f.write(vector.model_dump_json())
        tmp.replace(path)

    async def delete(self, user_id: str) -> None:
        self._path(user_id).unlink(missing_ok=True)

    async def user_ids(self) -> List[str]:
        return [unquote(p.name[: -len(".json")]) for p in self._dir.glob("*.json")]

    def count(self) -> int:
        return sum(1 for _ in self._dir.glob("*.json"))
