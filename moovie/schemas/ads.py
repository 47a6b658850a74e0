from __future__ import annotations

"""Ad engine records: networks, scripts, zones and the settings singleton.

Wire format is camelCase (the admin panel and the engine's HTTP source both
speak it); Python attributes stay snake_case. Dump with `by_alias=True`.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

#: Sentinel stored in `AdZone.script_id` meaning "rotate among all scripts".
NO_PINNED_SCRIPT = "none"


class AdType(str, Enum):
    popup = "popup"
    banner_728x90 = "banner_728x90"
    banner_468x60 = "banner_468x60"
    banner_300x250 = "banner_300x250"
    native = "native"
    social_bar = "social_bar"
    direct_link = "direct_link"
    video = "video"
    in_page_push = "in_page_push"


class AdPage(str, Enum):
    home = "home"
    watch = "watch"
    download = "download"
    live_tv = "live-tv"
    browse = "browse"
    all = "all"


class AdTrigger(str, Enum):
    load = "load"
    scroll = "scroll"
    click = "click"
    time = "time"
    exit_intent = "exit_intent"


class BannerSize(str, Enum):
    leaderboard = "728x90"
    banner = "468x60"
    rectangle = "300x250"


class _AdModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Networks ─────────────────────────────────────────────────
class AdNetwork(_AdModel):
    id: str
    name: str
    is_enabled: bool = True
    created_at: Optional[datetime] = None


class AdNetworkIn(_AdModel):
    name: str = Field(..., min_length=1, max_length=120)
    is_enabled: bool = True


class AdNetworkPatch(_AdModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    is_enabled: Optional[bool] = None


# ── Scripts ──────────────────────────────────────────────────
class AdScript(_AdModel):
    id: str
    network_id: str
    ad_type: AdType
    script: str = Field(..., description="Opaque third-party markup, injected verbatim")
    is_enabled: bool = True
    created_at: Optional[datetime] = None


class AdScriptIn(_AdModel):
    network_id: str = Field(..., min_length=1)
    ad_type: AdType
    script: str = Field(..., min_length=1)
    is_enabled: bool = True


class AdScriptPatch(_AdModel):
    network_id: Optional[str] = Field(None, min_length=1)
    ad_type: Optional[AdType] = None
    script: Optional[str] = Field(None, min_length=1)
    is_enabled: Optional[bool] = None


# ── Zones ────────────────────────────────────────────────────
class AdZone(_AdModel):
    id: str
    name: str
    page: AdPage = AdPage.home
    position: str
    ad_type: AdType
    script_id: Optional[str] = None
    is_enabled: bool = True
    rotation: bool = False
    lazy_load: bool = True
    trigger: AdTrigger = AdTrigger.load
    delay: int = Field(0, ge=0, description="Seconds, for time-triggered popups")
    frequency: Optional[int] = Field(None, ge=0, description="Overrides the global popup cap")
    created_at: Optional[datetime] = None

    @property
    def pinned_script_id(self) -> Optional[str]:
        """The script this zone must serve, or None when it rotates."""
        if self.rotation or not self.script_id or self.script_id == NO_PINNED_SCRIPT:
            return None
        return self.script_id


class AdZoneIn(_AdModel):
    name: str = Field(..., min_length=1, max_length=120)
    page: AdPage = AdPage.home
    position: str = Field(..., min_length=1, max_length=120)
    ad_type: AdType
    script_id: Optional[str] = None
    is_enabled: bool = True
    rotation: bool = False
    lazy_load: bool = True
    trigger: AdTrigger = AdTrigger.load
    delay: int = Field(0, ge=0)
    frequency: Optional[int] = Field(2, ge=0)


class AdZonePatch(_AdModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    page: Optional[AdPage] = None
    position: Optional[str] = Field(None, min_length=1, max_length=120)
    ad_type: Optional[AdType] = None
    script_id: Optional[str] = None
    is_enabled: Optional[bool] = None
    rotation: Optional[bool] = None
    lazy_load: Optional[bool] = None
    trigger: Optional[AdTrigger] = None
    delay: Optional[int] = Field(None, ge=0)
    frequency: Optional[int] = Field(None, ge=0)


# ── Settings (singleton) ─────────────────────────────────────
class AdSettings(_AdModel):
    master_enabled: bool = True
    test_mode: bool = False
    popup_frequency_cap: int = Field(2, ge=0)
    header_scripts: str = ""


class AdSettingsPatch(_AdModel):
    master_enabled: Optional[bool] = None
    test_mode: Optional[bool] = None
    popup_frequency_cap: Optional[int] = Field(None, ge=0)
    header_scripts: Optional[str] = None


# ── Envelopes ────────────────────────────────────────────────
class MutationResult(_AdModel):
    success: bool = True
    id: Optional[str] = None


class PlacementOut(_AdModel):
    displayed: bool
    ad_type: Optional[AdType] = None
    position: Optional[str] = None
    script_id: Optional[str] = None
    html: str = ""


__all__ = [
    "NO_PINNED_SCRIPT",
    "AdType",
    "AdPage",
    "AdTrigger",
    "BannerSize",
    "AdNetwork",
    "AdNetworkIn",
    "AdNetworkPatch",
    "AdScript",
    "AdScriptIn",
    "AdScriptPatch",
    "AdZone",
    "AdZoneIn",
    "AdZonePatch",
    "AdSettings",
    "AdSettingsPatch",
    "MutationResult",
    "PlacementOut",
]
