"""
Fast cache tier: short-lived key/value storage in front of the durable vector store.

The fast tier is advisory. Every backend error is logged and reported as a miss
so callers fall through to the durable tier or recompute.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Generic, Optional, Protocol, Tuple, TypeVar

from ..utils.clock import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIER_FAST = "fast"
TIER_DURABLE = "durable"
TIER_COMPUTED = "computed"
TIER_DEFAULT = "default"


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and where it came from."""
    value: T
    computed_at: datetime = field(default_factory=utc_now)
    ttl_seconds: Optional[int] = None
    tier: str = TIER_COMPUTED


class FastTier(Protocol):
    """Protocol for the fast (ephemeral) tier. Values are serialized strings."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix. Returns the number removed."""
        ...


class InMemoryFastTier:
    """Process-local TTL dict. Default fast tier when no Redis URL is configured."""

    def __init__(self, clock=time.monotonic):
        self._data: Dict[str, Tuple[str, float]] = {}
        self._clock = clock

    async def get(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._data[key] = (value, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        keys = [k for k in self._data if k.startswith(prefix)]
        for k in keys:
            del self._data[k]
        return len(keys)

    def __len__(self) -> int:
        return len(self._data)


class RedisFastTier:
    """
    Fast tier backed by Redis (redis-py asyncio client).

    Connection or command failures never propagate: they are logged and the
    operation degrades to a miss / no-op.
    """

    def __init__(self, client, namespace: str = "feedrank:"):
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "feedrank:") -> "RedisFastTier":
        import redis.asyncio as redis

        return cls(redis.from_url(url, decode_responses=True), namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(self._key(key))
        except Exception as e:
            logger.warning("[fast_tier] GET_FAILED key=%s error=%s", key, e)
            return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(self._key(key), value, ex=ttl_seconds)
        except Exception as e:
            logger.warning("[fast_tier] SET_FAILED key=%s error=%s", key, e)

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except Exception as e:
            logger.warning("[fast_tier] DELETE_FAILED key=%s error=%s", key, e)

    async def delete_prefix(self, prefix: str) -> int:
        removed = 0
        try:
            async for key in self._client.scan_iter(match=f"{self._key(prefix)}*"):
                removed += await self._client.delete(key)
        except Exception as e:
            logger.warning("[fast_tier] DELETE_PREFIX_FAILED prefix=%s error=%s", prefix, e)
        return removed

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning("[fast_tier] PING_FAILED error=%s", e)
            return False
