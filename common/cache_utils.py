"""
Two-tier cache: Redis when reachable, a process-local map otherwise.

The durable store is probed once, lazily, with a short connect timeout. If
that first probe fails the store is marked unavailable for the lifetime of
the process and every operation goes straight to memory. A failure on an
already-connected store only drops the connection; the next call probes
once more. No operation ever raises because the store is down.
"""

from __future__ import annotations

import asyncio
import hashlib
import time
import urllib.parse
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import orjson
import redis.asyncio as aioredis
import structlog
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError

from apps.core.errors import CacheUnavailable

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger(__name__).bind(component="CacheStore")

_DURABLE_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError, TimeoutError)


# ===================================================================
# 0.  Core helpers
# ===================================================================
def _orjson_default(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    msg = f"{type(obj).__name__} is not JSON serialisable"
    raise TypeError(msg)


def _dumps(obj: Any) -> bytes:
    return orjson.dumps(obj, default=_orjson_default, option=orjson.OPT_NON_STR_KEYS)


def _loads(raw: bytes | str) -> Any:
    return orjson.loads(raw)


# ===================================================================
# 1.  Cache-key builder
# ===================================================================
def build_cache_key(prefix: str, **params: Any) -> str:
    """
    Builds a stable, URL-safe cache key from a prefix and parameters.
    Falls back to an MD5 digest when the key would exceed 250 bytes.
    """
    max_len = 250

    params = {k: v for k, v in params.items() if v is not None}
    if not params:
        return prefix

    query = urllib.parse.urlencode(sorted(params.items()), doseq=True)
    key = f"{prefix}{query}" if prefix.endswith(":") else f"{prefix}:{query}"

    if len(key.encode()) <= max_len:
        return key

    digest = hashlib.md5(query.encode(), usedforsecurity=False).hexdigest()
    cut = max_len - len(digest) - 1
    return f"{prefix[:cut]}:{digest}"


# ===================================================================
# 2.  Store
# ===================================================================
class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(slots=True)
class CacheEntry:
    value: bytes
    created_at: float
    ttl_s: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl_s


def _default_client_factory(url: str, connect_timeout_s: float) -> Callable[[], aioredis.Redis]:
    def factory() -> aioredis.Redis:
        return aioredis.from_url(
            url,
            socket_connect_timeout=connect_timeout_s,
            retry=Retry(NoBackoff(), 0),
            retry_on_timeout=False,
        )

    return factory


class CacheStore:
    def __init__(
        self,
        url: str,
        *,
        connect_timeout_s: float = 2.0,
        key_prefix: str = "",
        clock: Callable[[], float] = time.monotonic,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.url = url
        self.key_prefix = key_prefix
        self._connect_timeout_s = connect_timeout_s
        self._clock = clock
        self._client_factory = client_factory or _default_client_factory(url, connect_timeout_s)

        self._redis: Any | None = None
        self._state = ConnectionState.DISCONNECTED
        self._unavailable = False
        self._connect_lock = asyncio.Lock()
        self._memory: dict[str, CacheEntry] = {}

    # ------------------------------------------------------------- status
    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def unavailable(self) -> bool:
        return self._unavailable

    @property
    def degraded(self) -> bool:
        return self._unavailable or self._state is not ConnectionState.CONNECTED

    def describe(self) -> dict[str, Any]:
        return {
            "backend": "memory" if self._unavailable else "redis",
            "state": self._state.value,
            "degraded": self.degraded,
            "memory_entries": len(self._memory),
        }

    # ------------------------------------------------------------- connection
    async def _durable(self) -> Any:
        if self._unavailable:
            raise CacheUnavailable(self.url)
        if self._state is ConnectionState.CONNECTED and self._redis is not None:
            return self._redis

        async with self._connect_lock:
            if self._unavailable:
                raise CacheUnavailable(self.url)
            if self._state is ConnectionState.CONNECTED and self._redis is not None:
                return self._redis

            self._state = ConnectionState.CONNECTING
            try:
                if self._redis is None:
                    self._redis = self._client_factory()
                await asyncio.wait_for(self._redis.ping(), timeout=self._connect_timeout_s)
            except Exception as exc:  # bad URL, refused connection, PING timeout
                self._state = ConnectionState.DISCONNECTED
                self._unavailable = True
                log.warning("Redis unavailable, using in-memory cache", url=self.url, err=str(exc) or type(exc).__name__)
                await self._discard_client()
                raise CacheUnavailable(self.url) from exc

            self._state = ConnectionState.CONNECTED
            log.info("Redis connected", url=self.url)
            return self._redis

    def _connection_lost(self, op: str, key: str, exc: BaseException) -> None:
        if self._state is ConnectionState.CONNECTED:
            log.warning("Redis operation failed, falling back to memory", op=op, key=key, err=str(exc) or type(exc).__name__)
        self._state = ConnectionState.DISCONNECTED

    async def _discard_client(self) -> None:
        client, self._redis = self._redis, None
        if client is None:
            return
        try:
            await client.aclose()
        except _DURABLE_ERRORS:
            log.debug("Ignoring error while closing Redis client")

    async def aclose(self) -> None:
        await self._discard_client()
        if not self._unavailable:
            self._state = ConnectionState.DISCONNECTED

    # ------------------------------------------------------------- memory tier
    def _memory_get(self, key: str) -> bytes | None:
        entry = self._memory.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._memory[key]
            return None
        return entry.value

    def _memory_set(self, key: str, raw: bytes, ttl_s: float) -> None:
        self._memory[key] = CacheEntry(raw, self._clock(), ttl_s)

    # ------------------------------------------------------------- public API
    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Any | None:
        full = self._key(key)
        try:
            client = await self._durable()
            raw = await client.get(full)
        except CacheUnavailable:
            pass
        except _DURABLE_ERRORS as exc:
            self._connection_lost("get", full, exc)
        else:
            if raw is not None:
                try:
                    return _loads(raw)
                except orjson.JSONDecodeError:
                    log.warning("Corrupt JSON in cache, deleting", key=full)
                    await self.delete(key)
                    return None

        raw = self._memory_get(full)
        if raw is None:
            return None
        try:
            return _loads(raw)
        except orjson.JSONDecodeError:
            log.warning("Corrupt JSON in memory cache, deleting", key=full)
            self._memory.pop(full, None)
            return None

    async def set(self, key: str, value: Any, ttl_s: int) -> bool:
        """Store ``value`` for ``ttl_s`` seconds. Returns ``False`` when only memory took it, or nothing did."""
        full = self._key(key)
        if ttl_s <= 0:
            log.warning("Refusing to cache with non-positive TTL", key=full, ttl_s=ttl_s)
            return False
        try:
            raw = _dumps(value)
        except orjson.JSONEncodeError as exc:
            log.warning("Value is not JSON serializable, not cached", key=full, err=str(exc))
            return False
        try:
            client = await self._durable()
            await client.set(full, raw, ex=int(ttl_s))
        except CacheUnavailable:
            pass
        except _DURABLE_ERRORS as exc:
            self._connection_lost("set", full, exc)
        else:
            self._memory.pop(full, None)
            log.debug("Cache set", key=full, size_kb=f"{len(raw) / 1024:.1f}")
            return True

        self._memory_set(full, raw, ttl_s)
        return False

    async def delete(self, key: str) -> bool:
        full = self._key(key)
        removed = self._memory.pop(full, None) is not None
        try:
            client = await self._durable()
            removed = bool(await client.delete(full)) or removed
        except CacheUnavailable:
            pass
        except _DURABLE_ERRORS as exc:
            self._connection_lost("delete", full, exc)
        return removed

    async def exists(self, key: str) -> bool:
        full = self._key(key)
        try:
            client = await self._durable()
            if await client.exists(full):
                return True
        except CacheUnavailable:
            pass
        except _DURABLE_ERRORS as exc:
            self._connection_lost("exists", full, exc)
        return self._memory_get(full) is not None
