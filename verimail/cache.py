# verimail/cache.py
"""Verdict cache on top of a get/put key-value store."""
import json
import logging
import math
import time
from typing import Callable, Optional, Protocol

import redis.asyncio as redis

from verimail.models import CacheEntry, Verification

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[dict]: ...

    async def put(self, item: dict) -> None: ...

    async def aclose(self) -> None: ...


class InMemoryStore:
    """Process-local store. Expired items are dropped on read and on write."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._items: dict[str, dict] = {}
        self._clock = clock

    def _expired(self, item: dict) -> bool:
        return self._clock() >= item["expires_at"]

    async def get(self, key: str) -> Optional[dict]:
        item = self._items.get(key)
        if item is not None and self._expired(item):
            del self._items[key]
            return None
        return item

    async def put(self, item: dict) -> None:
        self._evict_expired()
        self._items[item["email"]] = dict(item)

    def _evict_expired(self) -> None:
        expired = [key for key, item in self._items.items() if self._expired(item)]
        for key in expired:
            del self._items[key]

    async def aclose(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class RedisStore:
    """Redis-backed store. Items are JSON under ``{table}:{email}``."""

    def __init__(
        self,
        url: str,
        table: str,
        client: Optional[redis.Redis] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.table = table
        self._client = client or redis.from_url(url, decode_responses=True)
        self._clock = clock

    def _key(self, email: str) -> str:
        return f"{self.table}:{email}"

    async def get(self, key: str) -> Optional[dict]:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def put(self, item: dict) -> None:
        # Let Redis drop the key once it has expired
        expire_in = math.ceil(item["expires_at"] - self._clock())
        await self._client.set(
            self._key(item["email"]),
            json.dumps(item),
            ex=max(expire_in, 1),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


class ResultCache:
    """get/put of verdicts with a fixed TTL. Store failures never propagate."""

    def __init__(self, store: KeyValueStore, ttl: int, clock: Callable[[], float] = time.time):
        self.store = store
        self.ttl = ttl
        self._clock = clock

    async def get(self, email: str) -> Optional[Verification]:
        try:
            item = await self.store.get(email)
            if not item:
                return None
            entry = CacheEntry.from_item(item)
        except Exception as e:
            logger.error("Cache check failed for %s: %s", email, e)
            return None

        if not entry.is_usable(self._clock()):
            return None
        return entry.verification

    async def put(self, email: str, verification: Verification) -> None:
        entry = CacheEntry(
            email=email,
            verification=verification,
            expires_at=self._clock() + self.ttl,
        )
        try:
            await self.store.put(entry.to_item())
        except Exception as e:
            logger.error("Cache update failed for %s: %s", email, e)

    async def aclose(self) -> None:
        await self.store.aclose()
