# tests/test_ads/test_ttl_map.py

from moovie.core.cache import TTLMap
from tests.fixtures.ads import FixedClock


def test_entries_expire_after_ttl():
    clock = FixedClock(start=1_000)
    m = TTLMap(maxsize=4, clock=clock)
    m.set("a", 1, ttl_seconds=10)
    assert m.get("a") == 1

    clock.advance(9)
    assert m.get("a") == 1
    clock.advance(1)
    assert m.get("a") is None
    assert len(m) == 0


def test_reset_refreshes_expiry_without_evicting():
    clock = FixedClock(start=0)
    m = TTLMap(maxsize=2, clock=clock)
    m.set("a", 1, ttl_seconds=10)
    m.set("b", 2, ttl_seconds=10)

    clock.advance(8)
    m.set("a", 3, ttl_seconds=10)
    assert len(m) == 2
    clock.advance(5)
    assert m.get("a") == 3
    assert m.get("b") is None


def test_full_map_drops_expired_before_oldest():
    clock = FixedClock(start=0)
    m = TTLMap(maxsize=2, clock=clock)
    m.set("old", 1, ttl_seconds=100)
    m.set("short", 2, ttl_seconds=1)

    clock.advance(2)
    m.set("new", 3, ttl_seconds=100)
    assert m.get("old") == 1
    assert m.get("new") == 3

    m.set("newer", 4, ttl_seconds=100)
    assert len(m) == 2
    assert m.get("old") is None
