# moovie/services/ads/engine.py
from __future__ import annotations

"""
Moovie — Ad Engine
==================

Process-wide composition root for ad serving:

- one `AdSource` (repository in-process, or the admin API over HTTP when
  `ADS_SOURCE_BASE_URL` is set)
- one `ZoneCache` bound to that source
- a per-visitor `PlacementContext` (frequency store + admin check)

`serve()` evaluates a single placement eagerly for a visitor. The page asks for
a placement once its own activation rule fired (visible slot, popup trigger),
so the server does not wait on visibility or timers.
"""

import random
from typing import Literal, Optional, get_args

from loguru import logger
from markupsafe import Markup

from moovie.core.config import settings
from moovie.repositories.ads import get_ads_repository
from moovie.schemas.ads import AdTrigger, PlacementOut
from moovie.services.ads.eligibility import AdminCheck, EligibilityGate
from moovie.services.ads.frequency import frequency_store_for
from moovie.services.ads.placements import (
    AdPlacement,
    BannerPlacement,
    NativePlacement,
    PlacementContext,
    PlacementState,
    PopupPlacement,
    SocialBarPlacement,
)
from moovie.services.ads.source import AdSource, HttpAdSource, RepositoryAdSource, load_ad_settings
from moovie.services.ads.zones import ZoneCache, zone_cache

PlacementKind = Literal["banner", "native", "social_bar", "popup"]
PLACEMENT_KINDS = get_args(PlacementKind)


class AdEngine:
    def __init__(
        self,
        source: AdSource,
        *,
        zones: Optional[ZoneCache] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.source = source
        self.zones = zones or ZoneCache()
        self.zones.bind(source.fetch_zones)
        self.rng = rng

    def context_for(self, visitor_id: Optional[str], is_admin: Optional[AdminCheck] = None) -> PlacementContext:
        gate = EligibilityGate(frequency_store_for(visitor_id), is_admin)
        return PlacementContext(source=self.source, zones=self.zones, gate=gate, rng=self.rng)

    def build_placement(
        self,
        ctx: PlacementContext,
        kind: PlacementKind,
        *,
        size: Optional[str] = None,
        position: Optional[str] = None,
        trigger: Optional[AdTrigger] = None,
        delay: int = 0,
    ) -> AdPlacement:
        if kind == "banner":
            return BannerPlacement(ctx, size or "728x90", position=position)
        if kind == "native":
            return NativePlacement(ctx, position=position)
        if kind == "social_bar":
            return SocialBarPlacement(ctx, position=position)
        if kind == "popup":
            return PopupPlacement(ctx, trigger=trigger or AdTrigger.load, delay=delay, position=position)
        raise ValueError(f"unknown placement kind: {kind!r} (expected one of {PLACEMENT_KINDS})")

    async def serve(
        self,
        kind: PlacementKind,
        *,
        visitor_id: Optional[str] = None,
        is_admin: Optional[AdminCheck] = None,
        size: Optional[str] = None,
        position: Optional[str] = None,
        trigger: Optional[AdTrigger] = None,
        delay: int = 0,
    ) -> PlacementOut:
        ctx = self.context_for(visitor_id, is_admin)
        placement = self.build_placement(ctx, kind, size=size, position=position, trigger=trigger, delay=delay)
        placement.mount()
        placement.activate()
        state = await placement.wait()
        logger.debug(
            "[Ads] served | kind={} type={} position={} state={}",
            kind, placement.ad_type.value, position, state.value,
        )
        displayed = state is PlacementState.displayed
        return PlacementOut(
            displayed=displayed,
            ad_type=placement.ad_type,
            position=placement.position,
            script_id=placement.script.id if displayed and placement.script else None,
            html=str(placement.render()),
        )

    async def header_scripts(self, is_admin: Optional[AdminCheck] = None) -> Markup:
        """Site-wide head snippet, gated by the master switch and test mode."""
        current = await load_ad_settings(self.source)
        if current.master_enabled is False:
            return Markup("")
        if current.test_mode and not (is_admin is not None and is_admin()):
            return Markup("")
        return Markup(current.header_scripts or "")


def build_ad_source() -> AdSource:
    if settings.ADS_SOURCE_BASE_URL:
        return HttpAdSource(settings.ADS_SOURCE_BASE_URL)
    return RepositoryAdSource(get_ads_repository())


_engine: Optional[AdEngine] = None


def get_ad_engine() -> AdEngine:
    """FastAPI dependency: the process-wide engine (built on first use)."""
    global _engine
    if _engine is None:
        _engine = AdEngine(build_ad_source(), zones=zone_cache)
    return _engine


def reset_ad_engine() -> None:
    global _engine
    _engine = None
    zone_cache.invalidate()


__all__ = [
    "PLACEMENT_KINDS",
    "PlacementKind",
    "AdEngine",
    "build_ad_source",
    "get_ad_engine",
    "reset_ad_engine",
]
