# tests/fixtures/ads.py

"""
🧩 Ad fixtures:
- Record builders for scripts/zones
- `FakeSource`: in-memory AdSource with call counters, failure and gating knobs
- `FixedClock`: controllable epoch-ms clock for the frequency store
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

import pytest

from moovie.schemas.ads import AdPage, AdScript, AdSettings, AdTrigger, AdType, AdZone
from moovie.services.ads.eligibility import EligibilityGate
from moovie.services.ads.frequency import FrequencyStore, MemoryFrequencyStorage
from moovie.services.ads.placements import PlacementContext
from moovie.services.ads.zones import ZoneCache

DAY_MS = 24 * 60 * 60 * 1000
CLOCK_START = 1_718_000_000_000


def make_script(
    script_id: str,
    ad_type: AdType | str = AdType.popup,
    script: Optional[str] = None,
    *,
    network_id: str = "net-1",
    is_enabled: bool = True,
) -> AdScript:
    return AdScript(
        id=script_id,
        network_id=network_id,
        ad_type=AdType(ad_type),
        script=script if script is not None else f"<script data-id=\"{script_id}\"></script>",
        is_enabled=is_enabled,
    )


def make_zone(
    position: str,
    ad_type: AdType | str,
    *,
    zone_id: Optional[str] = None,
    page: AdPage = AdPage.home,
    script_id: Optional[str] = None,
    is_enabled: bool = True,
    rotation: bool = False,
    lazy_load: bool = True,
    trigger: AdTrigger = AdTrigger.load,
    delay: int = 0,
    frequency: Optional[int] = None,
) -> AdZone:
    return AdZone(
        id=zone_id or f"zone-{position}",
        name=position.replace("_", " ").title(),
        page=page,
        position=position,
        ad_type=AdType(ad_type),
        script_id=script_id,
        is_enabled=is_enabled,
        rotation=rotation,
        lazy_load=lazy_load,
        trigger=trigger,
        delay=delay,
        frequency=frequency,
    )


class FakeSource:
    """AdSource double. Set `*_error` to make a fetch raise, `settings_gate` to block it."""

    def __init__(
        self,
        *,
        settings: Optional[AdSettings] = None,
        scripts: Optional[List[AdScript]] = None,
        zones: Optional[List[AdZone]] = None,
    ) -> None:
        self.settings = settings
        self.scripts = list(scripts or [])
        self.zones = list(zones or [])
        self.settings_error: Optional[Exception] = None
        self.scripts_error: Optional[Exception] = None
        self.zones_error: Optional[Exception] = None
        self.settings_gate: Optional[asyncio.Event] = None
        self.settings_calls = 0
        self.script_calls = 0
        self.zone_calls = 0

    async def fetch_settings(self) -> Optional[AdSettings]:
        self.settings_calls += 1
        if self.settings_gate is not None:
            await self.settings_gate.wait()
        if self.settings_error is not None:
            raise self.settings_error
        return self.settings

    async def fetch_scripts(self) -> List[AdScript]:
        self.script_calls += 1
        if self.scripts_error is not None:
            raise self.scripts_error
        return list(self.scripts)

    async def fetch_zones(self) -> List[AdZone]:
        self.zone_calls += 1
        if self.zones_error is not None:
            raise self.zones_error
        return list(self.zones)


class FixedClock:
    def __init__(self, start: int = CLOCK_START) -> None:
        self.start = start
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class PickLast:
    """Deterministic stand-in for `random.Random` in selection tests."""

    def choice(self, seq):
        return seq[-1]


def make_context(
    source: FakeSource,
    *,
    store: Optional[FrequencyStore] = None,
    is_admin: bool = False,
    rng=None,
) -> PlacementContext:
    gate = EligibilityGate(store or FrequencyStore(MemoryFrequencyStorage()), lambda: is_admin)
    return PlacementContext(source=source, zones=ZoneCache(source.fetch_zones), gate=gate, rng=rng)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def fake_source() -> FakeSource:
    return FakeSource(settings=AdSettings())


__all__ = [
    "DAY_MS",
    "CLOCK_START",
    "FakeSource",
    "FixedClock",
    "PickLast",
    "make_context",
    "make_script",
    "make_zone",
    "clock",
    "fake_source",
]
