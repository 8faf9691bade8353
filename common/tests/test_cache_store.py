import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from common.cache_utils import CacheStore, ConnectionState, build_cache_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FakeRedis:
    """In-process stand-in for redis.asyncio.Redis; expiry follows the shared fake clock."""

    def __init__(self, clock: FakeClock, *, up: bool = True) -> None:
        self.clock = clock
        self.up = up
        self.data: dict[str, tuple[bytes, float]] = {}
        self.pings = 0
        self.closed = False

    def _check(self) -> None:
        if not self.up:
            raise RedisConnectionError("connection refused")

    async def ping(self) -> bool:
        self.pings += 1
        self._check()
        return True

    async def get(self, key):
        self._check()
        item = self.data.get(key)
        if item is None or item[1] <= self.clock.now:
            return None
        return item[0]

    async def set(self, key, value, ex):
        self._check()
        self.data[key] = (value, self.clock.now + ex)
        return True

    async def delete(self, key):
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    async def exists(self, key):
        self._check()
        return int(await self.get(key) is not None)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock()


def make_store(clock, redis):
    return CacheStore("redis://fake", key_prefix="t:", clock=clock, client_factory=lambda: redis)


# ─── key builder ──────────────────────────────────────────────────────────────


def test_build_cache_key_is_order_independent_and_drops_none():
    a = build_cache_key("player:matches:1", page=2, limit=20, hero_id=None)
    b = build_cache_key("player:matches:1", limit=20, page=2)
    assert a == b == "player:matches:1:limit=20&page=2"


def test_build_cache_key_without_params_is_prefix():
    assert build_cache_key("heroes:data:") == "heroes:data:"


def test_build_cache_key_hashes_long_keys():
    key = build_cache_key("p", blob="x" * 400)
    assert len(key.encode()) <= 250
    assert key.startswith("p:")


# ─── live durable store ───────────────────────────────────────────────────────


async def test_round_trip_through_redis(clock):
    redis = FakeRedis(clock)
    store = make_store(clock, redis)

    assert await store.set("k", {"a": [1, 2]}, 60) is True
    assert await store.get("k") == {"a": [1, 2]}
    assert "t:k" in redis.data
    assert store.state is ConnectionState.CONNECTED
    assert store.describe()["backend"] == "redis"


async def test_value_expires_after_ttl(clock):
    store = make_store(clock, FakeRedis(clock))
    await store.set("k", 1, 10)
    clock.now = 9.9
    assert await store.get("k") == 1
    clock.now = 10.0
    assert await store.get("k") is None


async def test_delete_and_exists(clock):
    store = make_store(clock, FakeRedis(clock))
    await store.set("k", "v", 10)
    assert await store.exists("k")
    assert await store.delete("k") is True
    assert not await store.exists("k")
    assert await store.delete("k") is False


async def test_corrupt_entry_is_deleted(clock):
    redis = FakeRedis(clock)
    store = make_store(clock, redis)
    redis.data["t:k"] = (b"{not json", 100.0)

    assert await store.get("k") is None
    assert "t:k" not in redis.data


async def test_non_positive_ttl_is_not_stored(clock):
    redis = FakeRedis(clock)
    store = make_store(clock, redis)

    assert await store.set("k", 1, 0) is False
    assert await store.set("k", 1, -5) is False
    assert await store.get("k") is None
    assert redis.data == {}
    assert store.describe()["memory_entries"] == 0


async def test_unserializable_value_is_not_stored(clock):
    store = make_store(clock, FakeRedis(clock))
    assert await store.set("k", object(), 10) is False
    assert await store.get("k") is None


# ─── unavailable durable store ────────────────────────────────────────────────


async def test_unreachable_redis_falls_back_to_memory_and_latches(clock):
    redis = FakeRedis(clock, up=False)
    store = make_store(clock, redis)

    assert await store.set("k", [1], 10) is False
    assert await store.get("k") == [1]
    assert store.unavailable
    assert store.describe() == {
        "backend": "memory",
        "state": "disconnected",
        "degraded": True,
        "memory_entries": 1,
    }

    redis.up = True
    await store.get("k")
    assert redis.pings == 1


async def test_memory_entries_expire(clock):
    store = make_store(clock, FakeRedis(clock, up=False))
    await store.set("k", "v", 5)
    clock.now = 4.0
    assert await store.exists("k")
    clock.now = 5.0
    assert await store.get("k") is None
    assert store.describe()["memory_entries"] == 0


async def test_slow_ping_counts_as_unavailable(clock):
    class HangingRedis(FakeRedis):
        async def ping(self):
            await asyncio.sleep(10)

    redis = HangingRedis(clock)
    store = CacheStore("redis://fake", connect_timeout_s=0.01, clock=clock, client_factory=lambda: redis)

    assert await store.get("missing") is None
    assert store.unavailable
    assert store.state is ConnectionState.DISCONNECTED
    assert redis.closed
    assert await store.set("k", "v", 10) is False
    assert await store.get("k") == "v"


async def test_client_construction_error_degrades_to_memory(clock):
    def broken_factory():
        raise ValueError("Redis URL must specify one of the following schemes")

    store = CacheStore("redis://fake", clock=clock, client_factory=broken_factory)

    assert await store.get("k") is None
    assert store.unavailable
    assert store.state is ConnectionState.DISCONNECTED
    assert await store.set("k", {"a": 1}, 10) is False
    assert await store.get("k") == {"a": 1}
    assert await store.exists("k")
    assert await store.delete("k") is True


async def test_malformed_url_degrades_to_memory(clock):
    store = CacheStore("not-a-redis-url", clock=clock)

    assert await store.get("k") is None
    assert await store.set("k", [1], 10) is False
    assert await store.get("k") == [1]
    assert store.describe()["backend"] == "memory"


async def test_dropped_connection_reprobes_once(clock):
    redis = FakeRedis(clock)
    store = make_store(clock, redis)
    await store.set("k", "durable", 60)

    redis.up = False
    assert await store.set("k2", "mem", 60) is False
    assert store.state is ConnectionState.DISCONNECTED
    assert not store.unavailable

    assert await store.get("k2") == "mem"
    assert store.unavailable
    assert redis.pings == 2


async def test_aclose_releases_client(clock):
    redis = FakeRedis(clock)
    store = make_store(clock, redis)
    await store.set("k", 1, 10)
    await store.aclose()
    assert redis.closed
    assert store.state is ConnectionState.DISCONNECTED
