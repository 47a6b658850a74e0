# moovie/services/ads/zones.py
from __future__ import annotations

"""
Moovie — Ad Zone Resolver
=========================

Maps a placement's `position` to its enabled `AdZone`.

The full zone list is fetched once per process and memoized. Concurrent
callers that arrive while the first fetch is still running await the same
`asyncio` task, so the source sees exactly one request. A failed fetch
resolves to an empty list for that round and leaves nothing cached, so the
next lookup retries.

There is no TTL; admin zone writes call `invalidate_zone_cache()`.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

from loguru import logger

from moovie.schemas.ads import AdZone

ZoneFetcher = Callable[[], Awaitable[List[AdZone]]]


class ZoneCache:
    def __init__(self, fetch: Optional[ZoneFetcher] = None) -> None:
        self.fetch = fetch
        self._zones: Optional[List[AdZone]] = None
        self._pending: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def is_loaded(self) -> bool:
        return self._zones is not None

    def bind(self, fetch: ZoneFetcher) -> None:
        """Point the cache at a new source; drops anything cached."""
        self.fetch = fetch
        self.invalidate()

    def invalidate(self) -> None:
        self._generation += 1
        self._zones = None
        self._pending = None

    async def _load(self) -> List[AdZone]:
        generation = self._generation
        try:
            if self.fetch is None:
                raise RuntimeError("zone cache has no source bound")
            zones = list(await self.fetch())
        except Exception as e:  # noqa: BLE001
            logger.warning("[Ads] loading zones failed | err={!r}", e)
            if generation == self._generation:
                self._pending = None
            return []
        # invalidated mid-fetch: serve this round without memoizing
        if generation == self._generation:
            self._zones = zones
        return zones

    async def all_zones(self) -> List[AdZone]:
        if self._zones is not None:
            return self._zones
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._pending)

    async def get_zone_config(self, position_id: str) -> Optional[AdZone]:
        """Enabled zone at `position_id`; missing and disabled zones are both None."""
        try:
            zones = await self.all_zones()
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.warning("[Ads] zone lookup failed | position={} err={!r}", position_id, e)
            return None
        for zone in zones:
            if zone.position == position_id and zone.is_enabled:
                return zone
        return None


zone_cache = ZoneCache()


async def get_zone_config(position_id: str) -> Optional[AdZone]:
    return await zone_cache.get_zone_config(position_id)


def invalidate_zone_cache() -> None:
    zone_cache.invalidate()


__all__ = ["ZoneCache", "zone_cache", "get_zone_config", "invalidate_zone_cache"]
