# tests/test_ads/test_frequency_store.py

import json

import pytest

from moovie.core.config import settings
from moovie.services.ads.frequency import (
    AD_COUNT_KEY,
    FrequencyStore,
    MemoryFrequencyStorage,
    RedisFrequencyStorage,
    frequency_store_for,
    is_under_cap,
    memory_visitor_count,
    reset_memory_frequency_maps,
)
from tests.fixtures.ads import DAY_MS

pytestmark = pytest.mark.anyio


def _store(clock, storage=None):
    return FrequencyStore(storage or MemoryFrequencyStorage(), window_ms=DAY_MS, clock=clock)


# ─────────────────────────────────────────────────────────────────────────────
# Pure cap check
# ─────────────────────────────────────────────────────────────────────────────

def test_is_under_cap_missing_entry():
    assert is_under_cap({}, "popup", 1, now=0) is True


def test_is_under_cap_strictly_below():
    counts = {"popup": {"count": 2, "timestamp": 1_000}}
    assert is_under_cap(counts, "popup", 3, now=2_000) is True
    assert is_under_cap(counts, "popup", 2, now=2_000) is False


def test_is_under_cap_ignores_expired_entry():
    counts = {"popup": {"count": 9, "timestamp": 0}}
    assert is_under_cap(counts, "popup", 1, now=DAY_MS + 1, window_ms=DAY_MS) is True


# ─────────────────────────────────────────────────────────────────────────────
# Store
# ─────────────────────────────────────────────────────────────────────────────

async def test_fresh_visitor_is_under_cap(clock):
    assert await _store(clock).check_frequency_cap("popup", 2) is True


async def test_cap_reached_after_n_increments(clock):
    store = _store(clock)
    await store.increment_ad_count("popup")
    assert await store.check_frequency_cap("popup", 2) is True
    await store.increment_ad_count("popup")
    assert await store.check_frequency_cap("popup", 2) is False
    assert await store.check_frequency_cap("popup", 3) is True


async def test_window_starts_at_first_display(clock):
    storage = MemoryFrequencyStorage()
    store = _store(clock, storage)

    await store.increment_ad_count("popup")
    clock.advance(60_000)
    await store.increment_ad_count("popup")

    counts = await storage.load()
    assert counts == {"popup": {"count": 2, "timestamp": clock.start}}


async def test_entry_at_exact_window_boundary_still_counts(clock):
    store = _store(clock)
    await store.increment_ad_count("popup")
    clock.advance(DAY_MS)
    assert await store.check_frequency_cap("popup", 1) is False


async def test_expired_entry_is_pruned_and_allows_again(clock):
    storage = MemoryFrequencyStorage()
    store = _store(clock, storage)
    await store.increment_ad_count("popup")
    await store.increment_ad_count("popup")

    clock.advance(DAY_MS + 1)
    assert await store.check_frequency_cap("popup", 2) is True
    assert await storage.load() == {}


async def test_increment_after_expiry_opens_new_window(clock):
    storage = MemoryFrequencyStorage()
    store = _store(clock, storage)
    await store.increment_ad_count("popup")
    clock.advance(DAY_MS + 5)
    await store.increment_ad_count("popup")

    counts = await storage.load()
    assert counts["popup"] == {"count": 1, "timestamp": clock.now}


async def test_prune_writes_only_when_something_expired(clock):
    storage = MemoryFrequencyStorage(json.dumps({"popup": {"count": 1, "timestamp": clock.now}}))
    store = _store(clock, storage)

    await store.prune_expired()
    assert storage.writes == 0

    clock.advance(DAY_MS + 1)
    await store.prune_expired()
    assert storage.writes == 1
    await store.prune_expired()
    assert storage.writes == 1
    assert await storage.load() == {}


async def test_prune_keeps_fresh_entries(clock):
    raw = {
        "banner_728x90": {"count": 4, "timestamp": clock.now - DAY_MS - 10},
        "popup": {"count": 1, "timestamp": clock.now - 1_000},
    }
    storage = MemoryFrequencyStorage(json.dumps(raw))
    await _store(clock, storage).prune_expired()
    assert await storage.load() == {"popup": {"count": 1, "timestamp": clock.now - 1_000}}


async def test_corrupt_storage_fails_open(clock):
    storage = MemoryFrequencyStorage("{not json")
    store = _store(clock, storage)

    assert await store.check_frequency_cap("popup", 1) is True
    await store.increment_ad_count("popup")  # swallowed
    assert storage.raw == "{not json"
    assert storage.writes == 0


# ─────────────────────────────────────────────────────────────────────────────
# Redis backend
# ─────────────────────────────────────────────────────────────────────────────

async def test_redis_storage_persists_per_visitor_with_ttl(redis_client, clock):
    store = _store(clock, RedisFrequencyStorage("abc", ttl_seconds=3600))
    await store.increment_ad_count("popup")

    key = f"{AD_COUNT_KEY}:abc"
    assert json.loads(await redis_client.get(key)) == {"popup": {"count": 1, "timestamp": clock.now}}
    assert 0 < await redis_client.ttl(key) <= 3600
    assert await redis_client.exists(f"{AD_COUNT_KEY}:other") == 0


async def test_redis_outage_fails_open(redis_client, clock):
    store = _store(clock, RedisFrequencyStorage("abc"))
    await store.increment_ad_count("popup")

    redis_client.fail_next(ConnectionError("redis down"))
    assert await store.check_frequency_cap("popup", 1) is True


async def test_memory_stores_are_shared_per_visitor():
    a1 = frequency_store_for("a")
    await a1.increment_ad_count("popup")
    a2 = frequency_store_for("a")
    b = frequency_store_for("b")
    assert a1.storage is a2.storage
    assert a1.storage is not b.storage
    assert await a2.check_frequency_cap("popup", 1) is False


async def test_memory_visitors_are_kept_only_once_written():
    for i in range(5):
        store = frequency_store_for(f"fresh-{i}")
        assert await store.check_frequency_cap("popup", 2) is True
    assert memory_visitor_count() == 0

    await frequency_store_for("fresh-0").increment_ad_count("popup")
    assert memory_visitor_count() == 1


async def test_memory_visitors_are_bounded(monkeypatch):
    monkeypatch.setattr(settings, "ADS_MEMORY_FREQUENCY_MAX_VISITORS", 3)
    reset_memory_frequency_maps()

    for i in range(10):
        await frequency_store_for(f"v{i}").increment_ad_count("popup")

    assert memory_visitor_count() == 3
    # the oldest visitors were evicted, the newest kept their counts
    assert await frequency_store_for("v0").check_frequency_cap("popup", 1) is True
    assert await frequency_store_for("v9").check_frequency_cap("popup", 1) is False


def test_anonymous_visitors_get_throwaway_maps():
    assert frequency_store_for(None).storage is not frequency_store_for(None).storage


def test_redis_backend_selected_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "ADS_FREQUENCY_BACKEND", "redis")
    store = frequency_store_for("vid")
    assert isinstance(store.storage, RedisFrequencyStorage)
    assert store.storage.key == f"{AD_COUNT_KEY}:vid"
