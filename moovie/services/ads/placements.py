# moovie/services/ads/placements.py
from __future__ import annotations

"""
Moovie — Ad Placements
======================

One object per ad slot on a page. Each placement is a small state machine::

    idle ──activate──▶ loading ──▶ displayed
                          │
                          └──────▶ suppressed
    (any) ──unmount──▶ cancelled

Activation depends on the kind:

- `BannerPlacement` / `NativePlacement`: lazy by default; `notify_visibility()`
  with an intersection ratio of at least 0.1 starts the load, once.
- `SocialBarPlacement`: eager; `dismiss()` hides it locally.
- `PopupPlacement`: `load` fires on mount, `time` after `delay` seconds,
  `exit_intent` on the first mouse-leave through the top edge, `scroll` and
  `click` on the first matching notification.

Loading pipeline (strictly sequential, first negative answer suppresses):
settings → zone (when a position is given) → eligibility → scripts → pick.
Any placement that ends up showing a pop-up (its own type or its zone's)
counts once against the visitor's frequency cap.
Errors never reach the page: they are logged and the placement is suppressed.
The load runs as an `asyncio.Task` owned by the placement; `unmount()` cancels
it together with any trigger timer.
"""

import asyncio
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set

from loguru import logger
from markupsafe import Markup

from moovie.schemas.ads import AdScript, AdSettings, AdTrigger, AdType, AdZone, BannerSize
from moovie.services.ads.eligibility import EligibilityGate
from moovie.services.ads.rendering import render_placement
from moovie.services.ads.scripts import get_ad_scripts_by_type, select_script_for_zone
from moovie.services.ads.source import AdSource, load_ad_settings
from moovie.services.ads.zones import ZoneCache

VISIBILITY_THRESHOLD = 0.1


class PlacementState(str, Enum):
    idle = "idle"
    loading = "loading"
    displayed = "displayed"
    suppressed = "suppressed"
    cancelled = "cancelled"


@dataclass
class PlacementContext:
    """Collaborators shared by every placement rendered for one visitor."""

    source: AdSource
    zones: ZoneCache
    gate: EligibilityGate = field(default_factory=EligibilityGate)
    rng: Optional[random.Random] = None


# ─────────────────────────────────────────────────────────────
# Base placement
# ─────────────────────────────────────────────────────────────
class AdPlacement:
    template = "ads/placement.html"
    label: Optional[str] = "Advertisement"
    css_class = ""

    def __init__(
        self,
        ctx: PlacementContext,
        *,
        ad_type: AdType | str,
        position: Optional[str] = None,
        lazy_load: bool = True,
    ) -> None:
        self.ctx = ctx
        self.ad_type = AdType(ad_type)
        self.position = position or None
        self.lazy_load = lazy_load
        self.state = PlacementState.idle
        self.zone: Optional[AdZone] = None
        self.script: Optional[AdScript] = None
        self._observing = lazy_load
        self._counted = False
        self._task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:  # pragma: no cover
        return f"{type(self).__name__}(type={self.ad_type.value!r}, position={self.position!r}, state={self.state.value})"

    # ── lifecycle ────────────────────────────────────────────
    def mount(self) -> "AdPlacement":
        """Attach to the page. Eager placements start loading immediately."""
        if not self.lazy_load:
            self._start_load()
        return self

    def notify_visibility(self, ratio: float) -> None:
        """Intersection update; the first one at or above the threshold loads."""
        if not self._observing or ratio < VISIBILITY_THRESHOLD:
            return
        self._observing = False
        self._start_load()

    def activate(self) -> None:
        """Load now, whatever the activation rule (server-side evaluation)."""
        self._observing = False
        self._start_load()

    def unmount(self) -> None:
        self._observing = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.state = PlacementState.cancelled

    async def wait(self) -> PlacementState:
        """Settle the in-flight load, if any, and return the resulting state."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.state

    # ── loading ──────────────────────────────────────────────
    def _start_load(self) -> None:
        if self.state is not PlacementState.idle:
            return
        self.state = PlacementState.loading
        self._task = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        try:
            script = await self._resolve()
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            logger.exception("[Ads] placement load failed | type={} position={}", self.ad_type.value, self.position)
            script = None
        if self.state is PlacementState.cancelled:
            return
        if script is None:
            self.state = PlacementState.suppressed
            return
        self.script = script
        self.state = PlacementState.displayed
        await self._on_displayed()

    def _frequency(self, settings: AdSettings) -> Optional[int]:
        if self.zone is not None and self.zone.frequency is not None:
            return self.zone.frequency
        return settings.popup_frequency_cap

    async def _resolve(self) -> Optional[AdScript]:
        settings = await load_ad_settings(self.ctx.source)

        if self.position:
            self.zone = await self.ctx.zones.get_zone_config(self.position)
            if self.zone is None:
                return None
            self.ad_type = self.zone.ad_type

        allowed = await self.ctx.gate.should_show_ad(
            self.ad_type,
            self._frequency(settings),
            settings.test_mode,
            settings.master_enabled,
        )
        if not allowed:
            return None

        scripts = await get_ad_scripts_by_type(self.ctx.source, self.ad_type)
        if not scripts:
            return None
        return select_script_for_zone(scripts, self.zone, self.ctx.rng)

    async def _on_displayed(self) -> None:
        # zones may override the type, so count on the effective one
        if self.ad_type is not AdType.popup or self._counted:
            return
        self._counted = True
        await self.ctx.gate.store.increment_ad_count(AdType.popup.value)

    # ── output ───────────────────────────────────────────────
    @property
    def visible(self) -> bool:
        return self.state is PlacementState.displayed and self.script is not None

    def render(self) -> Markup:
        if not self.visible:
            return Markup("")
        return render_placement(
            self.template,
            ad_type=self.ad_type.value,
            payload=self.script.script,
            position=self.position,
            label=self.label,
            css_class=self.css_class,
        )


# ─────────────────────────────────────────────────────────────
# Kinds
# ─────────────────────────────────────────────────────────────
class BannerPlacement(AdPlacement):
    def __init__(
        self,
        ctx: PlacementContext,
        size: BannerSize | str,
        *,
        position: Optional[str] = None,
        lazy_load: bool = True,
    ) -> None:
        self.size = BannerSize(size)
        self.css_class = f"banner-ad banner-{self.size.value}"
        super().__init__(ctx, ad_type=f"banner_{self.size.value}", position=position, lazy_load=lazy_load)


class NativePlacement(AdPlacement):
    label = "Sponsored Content"
    css_class = "native-ad"

    def __init__(self, ctx: PlacementContext, *, position: Optional[str] = None, lazy_load: bool = True) -> None:
        super().__init__(ctx, ad_type=AdType.native, position=position, lazy_load=lazy_load)


class SocialBarPlacement(AdPlacement):
    template = "ads/social_bar.html"

    def __init__(self, ctx: PlacementContext, *, position: Optional[str] = None) -> None:
        super().__init__(ctx, ad_type=AdType.social_bar, position=position, lazy_load=False)
        self.hidden = False

    def dismiss(self) -> None:
        """Close button; not persisted, the bar returns on the next mount."""
        self.hidden = True

    @property
    def visible(self) -> bool:
        return super().visible and not self.hidden


class PopupPlacement(AdPlacement):
    template = "ads/popup.html"
    label = None

    def __init__(
        self,
        ctx: PlacementContext,
        *,
        trigger: AdTrigger | str = AdTrigger.time,
        delay: int = 30,
        position: Optional[str] = None,
    ) -> None:
        super().__init__(ctx, ad_type=AdType.popup, position=position, lazy_load=False)
        self.trigger = AdTrigger(trigger)
        self.delay = max(0, int(delay))
        self._armed = False
        self._timer: Optional[asyncio.Task] = None

    def mount(self) -> "PopupPlacement":
        if self.trigger is AdTrigger.load:
            self._start_load()
        elif self.trigger is AdTrigger.time:
            self._timer = asyncio.ensure_future(self._fire_after_delay())
        else:
            self._armed = True
        return self

    async def _fire_after_delay(self) -> None:
        await asyncio.sleep(self.delay)
        self._start_load()

    def _fire(self, trigger: AdTrigger) -> None:
        if not self._armed or self.trigger is not trigger:
            return
        self._armed = False
        self._start_load()

    def notify_mouse_leave(self, client_y: float) -> None:
        """Exit intent: the pointer left through the top edge of the viewport."""
        if client_y <= 0:
            self._fire(AdTrigger.exit_intent)

    def notify_scroll(self) -> None:
        self._fire(AdTrigger.scroll)

    def notify_click(self) -> None:
        self._fire(AdTrigger.click)

    def activate(self) -> None:
        self._armed = False
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        super().activate()

    def unmount(self) -> None:
        self._armed = False
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        super().unmount()

    async def wait(self) -> PlacementState:
        if self._timer is not None:
            await asyncio.wait({self._timer})
        return await super().wait()


_BANNER_TYPES: Set[AdType] = {AdType.banner_728x90, AdType.banner_468x60, AdType.banner_300x250}


def placement_for_zone(ctx: PlacementContext, zone: AdZone) -> AdPlacement:
    """Build the placement a zone describes, honouring its activation settings."""
    ad_type = AdType(zone.ad_type)
    if ad_type is AdType.popup:
        return PopupPlacement(ctx, trigger=zone.trigger, delay=zone.delay, position=zone.position)
    if ad_type in _BANNER_TYPES:
        size = ad_type.value.split("_", 1)[1]
        return BannerPlacement(ctx, size, position=zone.position, lazy_load=zone.lazy_load)
    if ad_type is AdType.native:
        return NativePlacement(ctx, position=zone.position, lazy_load=zone.lazy_load)
    if ad_type is AdType.social_bar:
        return SocialBarPlacement(ctx, position=zone.position)
    return AdPlacement(ctx, ad_type=ad_type, position=zone.position, lazy_load=zone.lazy_load)


__all__ = [
    "VISIBILITY_THRESHOLD",
    "PlacementState",
    "PlacementContext",
    "AdPlacement",
    "BannerPlacement",
    "NativePlacement",
    "SocialBarPlacement",
    "PopupPlacement",
    "placement_for_zone",
]
