from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, runtime_checkable

import redis.asyncio as redis
from redis.exceptions import RedisError

from .errors import StoreUnavailable

log = logging.getLogger("signin.store")


@runtime_checkable
class SessionStore(Protocol):
    """Key-value store with a per-key time-to-live.

    Every method is one round trip. Backend failures surface as StoreUnavailable.
    """

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    async def get(self, key: str) -> Optional[str]:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def ping(self) -> None:
        ...

    async def close(self) -> None:
        ...


@dataclass
class StoredValue:
    value: str
    expires_at: float


class InMemorySessionStore:
    """
    Simple store for dev/tests (single process only).
    `clock` is injectable so expiry can be exercised without sleeping.
    """
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._store: Dict[str, StoredValue] = {}
        self._clock = clock

    async def get(self, key: str) -> Optional[str]:
        rec = self._store.get(key)
        if not rec:
            return None
        if rec.expires_at <= self._clock():
            self._store.pop(key, None)
            return None
        return rec.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = StoredValue(value=value, expires_at=self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class RedisSessionStore:
    """Redis-backed store: SET key value EX ttl / GET key / DEL key."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, password: Optional[str] = None) -> "RedisSessionStore":
        # from_url does not connect; the first command (or ping) does.
        client = redis.from_url(url, password=password, decode_responses=True)
        return cls(client)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise StoreUnavailable(f"redis SET failed for {key}: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        try:
            val = await self._client.get(key)
        except RedisError as e:
            raise StoreUnavailable(f"redis GET failed for {key}: {e}") from e
        if isinstance(val, bytes):
            val = val.decode("utf-8", errors="replace")
        return val

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            raise StoreUnavailable(f"redis DEL failed for {key}: {e}") from e

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except RedisError as e:
            raise StoreUnavailable(f"redis PING failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
        log.info("redis connection closed")
