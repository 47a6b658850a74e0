# moovie/services/ads/scripts.py
from __future__ import annotations

"""Script selection: enabled scripts by ad type, pinned-or-random choice."""

import random
from typing import List, Optional, Sequence

from loguru import logger

from moovie.schemas.ads import AdScript, AdType, AdZone
from moovie.services.ads.source import AdSource


async def get_ad_scripts_by_type(source: AdSource, ad_type: AdType | str) -> List[AdScript]:
    """Enabled scripts of `ad_type`. Fetch errors are logged and yield `[]`."""
    wanted = AdType(ad_type).value
    try:
        scripts = await source.fetch_scripts()
    except Exception as e:  # noqa: BLE001
        logger.warning("[Ads] fetching scripts failed | type={} err={!r}", wanted, e)
        return []
    return [s for s in scripts if s.ad_type.value == wanted and s.is_enabled]


def select_random_script(
    scripts: Sequence[AdScript],
    rng: Optional[random.Random] = None,
) -> Optional[AdScript]:
    if not scripts:
        return None
    return (rng or random).choice(list(scripts))


def select_script_for_zone(
    scripts: Sequence[AdScript],
    zone: Optional[AdZone],
    rng: Optional[random.Random] = None,
) -> Optional[AdScript]:
    """Honour a zone's pinned script when it is still eligible.

    A pinned script that is missing from `scripts` (deleted, disabled or of
    another type) falls back to a random pick.
    """
    pinned = zone.pinned_script_id if zone is not None else None
    if pinned:
        for script in scripts:
            if script.id == pinned:
                return script
        logger.debug("[Ads] pinned script not eligible; rotating | zone={} script={}", zone.id, pinned)
    return select_random_script(scripts, rng)


__all__ = ["get_ad_scripts_by_type", "select_random_script", "select_script_for_zone"]
