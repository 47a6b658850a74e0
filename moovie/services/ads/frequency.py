# moovie/services/ads/frequency.py
from __future__ import annotations

"""
Moovie — Ad Frequency Store
===========================

Per-ad-type display counts with a rolling 24h expiry, used to cap how often a
visitor sees pop-ups.

Record layout (one JSON map under a single key, rewritten on every write)::

    {"popup": {"count": 2, "timestamp": 1718000000000}}

`timestamp` is the epoch-ms of the *first* display in the current window; it
is not bumped on later displays, so the window never slides forward. An entry
is expired once `now - timestamp` exceeds the window.

Failure policy
--------------
Storage and (de)serialization errors are logged and swallowed. A broken store
must never hide ads outright: the cap check fails open (`True`) and increments
become no-ops.

Backends
--------
- `MemoryFrequencyStorage`: process-local JSON string. Per-visitor maps are
  registered on their first write and kept in a bounded `TTLMap` for one
  window after the last write, so cookieless traffic leaves nothing behind.
- `RedisFrequencyStorage`: one key per visitor, `moovie_ad_counts:<visitor_id>`,
  TTL refreshed on each write via `redis_wrapper.json_set`.
"""

import json
import time
from typing import Any, Callable, Dict, Optional, Protocol

from loguru import logger

from moovie.core.cache import TTLMap
from moovie.core.config import settings
from moovie.core.redis_client import RedisClient, redis_wrapper

AD_COUNT_KEY = "moovie_ad_counts"
DEFAULT_WINDOW_MS = 24 * 60 * 60 * 1000

AdCounts = Dict[str, Dict[str, int]]


def now_ms() -> int:
    return int(time.time() * 1000)


def _is_expired(entry: Dict[str, Any], now: int, window_ms: int) -> bool:
    return now - int(entry.get("timestamp", 0)) > window_ms


def is_under_cap(
    counts: AdCounts,
    ad_type: str,
    max_per_day: int,
    now: int,
    *,
    window_ms: int = DEFAULT_WINDOW_MS,
) -> bool:
    """Pure cap check over an already-loaded map.

    Missing or expired entries are under the cap; otherwise the stored count
    must be strictly below `max_per_day`.
    """
    entry = counts.get(ad_type)
    if not entry or _is_expired(entry, now, window_ms):
        return True
    return int(entry.get("count", 0)) < max_per_day


# ─────────────────────────────────────────────────────────────
# Storage backends
# ─────────────────────────────────────────────────────────────
class FrequencyStorage(Protocol):
    async def load(self) -> Optional[AdCounts]: ...
    async def save(self, counts: AdCounts) -> None: ...


class MemoryFrequencyStorage:
    """Holds the serialized map in-process, like a browser's local storage."""

    def __init__(
        self,
        raw: Optional[str] = None,
        *,
        on_save: Optional[Callable[["MemoryFrequencyStorage"], None]] = None,
    ) -> None:
        self.raw: Optional[str] = raw
        self.writes = 0
        self._on_save = on_save

    async def load(self) -> Optional[AdCounts]:
        if self.raw is None:
            return None
        return json.loads(self.raw)

    async def save(self, counts: AdCounts) -> None:
        self.raw = json.dumps(counts, separators=(",", ":"))
        self.writes += 1
        if self._on_save is not None:
            self._on_save(self)


class RedisFrequencyStorage:
    """Per-visitor map in Redis, expiring with the capping window."""

    def __init__(
        self,
        visitor_id: str,
        *,
        client: Optional[RedisClient] = None,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        self.key = f"{AD_COUNT_KEY}:{visitor_id}"
        self._client = client or redis_wrapper
        self.ttl_seconds = int(ttl_seconds or settings.ADS_FREQUENCY_WINDOW_SECONDS)

    async def load(self) -> Optional[AdCounts]:
        return await self._client.json_get(self.key)

    async def save(self, counts: AdCounts) -> None:
        await self._client.json_set(self.key, counts, ttl_seconds=self.ttl_seconds)


# ─────────────────────────────────────────────────────────────
# Store
# ─────────────────────────────────────────────────────────────
class FrequencyStore:
    """Check/increment facade over a `FrequencyStorage` backend."""

    def __init__(
        self,
        storage: FrequencyStorage,
        *,
        window_ms: Optional[int] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.storage = storage
        self.window_ms = int(window_ms if window_ms is not None else settings.frequency_window_ms)
        self._clock = clock

    async def _load(self) -> AdCounts:
        counts = await self.storage.load()
        if not isinstance(counts, dict):
            return {}
        return counts

    async def prune_expired(self) -> None:
        """Drop every expired entry. Writes only when something was removed."""
        counts = await self._load()
        now = self._clock()
        expired = [k for k, v in counts.items() if not isinstance(v, dict) or _is_expired(v, now, self.window_ms)]
        if not expired:
            return
        for key in expired:
            counts.pop(key, None)
        await self.storage.save(counts)

    async def check_frequency_cap(self, ad_type: str, max_per_day: int) -> bool:
        try:
            await self.prune_expired()
            counts = await self._load()
            return is_under_cap(counts, ad_type, max_per_day, self._clock(), window_ms=self.window_ms)
        except Exception as e:  # noqa: BLE001
            logger.warning("[Ads] frequency check failed; allowing ad | type={} err={!r}", ad_type, e)
            return True

    async def increment_ad_count(self, ad_type: str) -> None:
        try:
            counts = await self._load()
            now = self._clock()
            entry = counts.get(ad_type)
            if not isinstance(entry, dict) or _is_expired(entry, now, self.window_ms):
                counts[ad_type] = {"count": 1, "timestamp": now}
            else:
                entry["count"] = int(entry.get("count", 0)) + 1
            await self.storage.save(counts)
        except Exception as e:  # noqa: BLE001
            logger.warning("[Ads] frequency increment failed | type={} err={!r}", ad_type, e)


_memory_maps: Optional[TTLMap] = None


def _visitor_maps() -> TTLMap:
    global _memory_maps
    if _memory_maps is None:
        _memory_maps = TTLMap(maxsize=settings.ADS_MEMORY_FREQUENCY_MAX_VISITORS)
    return _memory_maps


def _memory_storage_for(visitor_id: str) -> MemoryFrequencyStorage:
    maps = _visitor_maps()
    storage = maps.get(visitor_id)
    if storage is not None:
        return storage

    def _register(written: MemoryFrequencyStorage) -> None:
        maps.set(visitor_id, written, settings.ADS_FREQUENCY_WINDOW_SECONDS)

    return MemoryFrequencyStorage(on_save=_register)


def frequency_store_for(visitor_id: Optional[str]) -> FrequencyStore:
    """Build the store configured by `ADS_FREQUENCY_BACKEND` for one visitor.

    Anonymous callers (no visitor id) get a throwaway map, so nothing is capped
    across their requests.
    """
    if not visitor_id:
        return FrequencyStore(MemoryFrequencyStorage())
    if settings.ADS_FREQUENCY_BACKEND == "redis":
        return FrequencyStore(RedisFrequencyStorage(visitor_id))
    return FrequencyStore(_memory_storage_for(visitor_id))


def memory_visitor_count() -> int:
    return len(_memory_maps) if _memory_maps is not None else 0


def reset_memory_frequency_maps() -> None:
    global _memory_maps
    _memory_maps = None


__all__ = [
    "AD_COUNT_KEY",
    "DEFAULT_WINDOW_MS",
    "FrequencyStorage",
    "FrequencyStore",
    "MemoryFrequencyStorage",
    "RedisFrequencyStorage",
    "frequency_store_for",
    "is_under_cap",
    "memory_visitor_count",
    "now_ms",
    "reset_memory_frequency_maps",
]
