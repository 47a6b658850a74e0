from __future__ import annotations

"""Ads repository.

Interface plus an in-memory implementation for ad networks, scripts, zones and
the settings singleton. `moovie.repositories.ads_sql` provides the SQLAlchemy
implementation; `get_ads_repository()` picks one from settings.
"""

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

from loguru import logger
from pydantic import BaseModel

from moovie.core.config import settings
from moovie.db.base_class import new_id
from moovie.schemas.ads import (
    AdNetwork,
    AdNetworkIn,
    AdNetworkPatch,
    AdPage,
    AdScript,
    AdScriptIn,
    AdScriptPatch,
    AdSettings,
    AdSettingsPatch,
    AdZone,
    AdZoneIn,
    AdZonePatch,
)

M = TypeVar("M", bound=BaseModel)


# Implementations return pydantic records; ordering is creation order.
class AdsRepositoryProtocol:
    # networks
    async def list_networks(self) -> List[AdNetwork]:
        raise NotImplementedError

    async def get_network(self, network_id: str) -> Optional[AdNetwork]:
        raise NotImplementedError

    async def create_network(self, data: AdNetworkIn) -> AdNetwork:
        raise NotImplementedError

    async def update_network(self, network_id: str, patch: AdNetworkPatch) -> Optional[AdNetwork]:
        raise NotImplementedError

    async def delete_network(self, network_id: str) -> bool:
        raise NotImplementedError

    # scripts
    async def list_scripts(self, network_id: Optional[str] = None) -> List[AdScript]:
        raise NotImplementedError

    async def get_script(self, script_id: str) -> Optional[AdScript]:
        raise NotImplementedError

    async def create_script(self, data: AdScriptIn) -> AdScript:
        raise NotImplementedError

    async def update_script(self, script_id: str, patch: AdScriptPatch) -> Optional[AdScript]:
        raise NotImplementedError

    async def delete_script(self, script_id: str) -> bool:
        raise NotImplementedError

    # zones
    async def list_zones(self, page: Optional[AdPage] = None) -> List[AdZone]:
        raise NotImplementedError

    async def get_zone(self, zone_id: str) -> Optional[AdZone]:
        raise NotImplementedError

    async def create_zone(self, data: AdZoneIn) -> AdZone:
        raise NotImplementedError

    async def update_zone(self, zone_id: str, patch: AdZonePatch) -> Optional[AdZone]:
        raise NotImplementedError

    async def delete_zone(self, zone_id: str) -> bool:
        raise NotImplementedError

    # settings
    async def get_settings(self) -> Optional[AdSettings]:
        """Stored settings, or None when no settings document exists yet."""
        raise NotImplementedError

    async def update_settings(self, patch: AdSettingsPatch) -> AdSettings:
        raise NotImplementedError


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Explicit nulls clear these; elsewhere a null means "leave as is".
_NULLABLE_FIELDS = {"script_id", "frequency"}


def patch_changes(patch: BaseModel) -> Dict[str, Any]:
    return {
        k: v
        for k, v in patch.model_dump(exclude_unset=True).items()
        if v is not None or k in _NULLABLE_FIELDS
    }


def _apply_patch(current: M, patch: BaseModel) -> M:
    return current.model_copy(update=patch_changes(patch))


def initial_settings() -> AdSettings:
    """Settings a first write starts from (popup cap comes from config)."""
    return AdSettings(popup_frequency_cap=settings.ADS_DEFAULT_POPUP_CAP)


class MemoryAdsRepository(AdsRepositoryProtocol):
    """
    In-memory repository, optionally seeded from a JSON file.

    Env:
      - ADS_DATA_PATH: JSON object with optional keys `networks`, `scripts`,
        `zones` (lists of camelCase records) and `settings` (object).
    """

    def __init__(self, data_path: Optional[str] = None):
        self._networks: Dict[str, AdNetwork] = {}
        self._scripts: Dict[str, AdScript] = {}
        self._zones: Dict[str, AdZone] = {}
        self._settings: Optional[AdSettings] = None
        if not data_path:
            data_path = settings.ADS_DATA_PATH
        if data_path and os.path.exists(data_path):
            try:
                with open(data_path, "r", encoding="utf-8") as f:
                    self.seed(json.load(f) or {})
            except Exception as e:  # noqa: BLE001
                logger.warning("[Ads] could not seed from {} | err={!r}", data_path, e)
                self._networks, self._scripts, self._zones, self._settings = {}, {}, {}, None

    def seed(self, raw: Dict[str, Any]) -> None:
        for row in raw.get("networks") or []:
            n = AdNetwork.model_validate(row)
            self._networks[n.id] = n
        for row in raw.get("scripts") or []:
            s = AdScript.model_validate(row)
            self._scripts[s.id] = s
        for row in raw.get("zones") or []:
            z = AdZone.model_validate(row)
            self._zones[z.id] = z
        if raw.get("settings") is not None:
            self._settings = AdSettings.model_validate(raw["settings"])

    @staticmethod
    def _create(store: Dict[str, Any], model: Type[M], data: BaseModel) -> M:
        record = model(id=new_id(), created_at=_now(), **data.model_dump())
        store[record.id] = record
        return record

    @staticmethod
    def _update(store: Dict[str, Any], record_id: str, patch: BaseModel):
        current = store.get(record_id)
        if current is None:
            return None
        store[record_id] = _apply_patch(current, patch)
        return store[record_id]

    # networks
    async def list_networks(self) -> List[AdNetwork]:
        return list(self._networks.values())

    async def get_network(self, network_id: str) -> Optional[AdNetwork]:
        return self._networks.get(network_id)

    async def create_network(self, data: AdNetworkIn) -> AdNetwork:
        return self._create(self._networks, AdNetwork, data)

    async def update_network(self, network_id: str, patch: AdNetworkPatch) -> Optional[AdNetwork]:
        return self._update(self._networks, network_id, patch)

    async def delete_network(self, network_id: str) -> bool:
        # scripts keep their networkId; no cascade
        return self._networks.pop(network_id, None) is not None

    # scripts
    async def list_scripts(self, network_id: Optional[str] = None) -> List[AdScript]:
        items = list(self._scripts.values())
        if network_id:
            items = [s for s in items if s.network_id == network_id]
        return items

    async def get_script(self, script_id: str) -> Optional[AdScript]:
        return self._scripts.get(script_id)

    async def create_script(self, data: AdScriptIn) -> AdScript:
        return self._create(self._scripts, AdScript, data)

    async def update_script(self, script_id: str, patch: AdScriptPatch) -> Optional[AdScript]:
        return self._update(self._scripts, script_id, patch)

    async def delete_script(self, script_id: str) -> bool:
        return self._scripts.pop(script_id, None) is not None

    # zones
    async def list_zones(self, page: Optional[AdPage] = None) -> List[AdZone]:
        items = list(self._zones.values())
        if page is not None:
            items = [z for z in items if z.page == page]
        return items

    async def get_zone(self, zone_id: str) -> Optional[AdZone]:
        return self._zones.get(zone_id)

    async def create_zone(self, data: AdZoneIn) -> AdZone:
        return self._create(self._zones, AdZone, data)

    async def update_zone(self, zone_id: str, patch: AdZonePatch) -> Optional[AdZone]:
        return self._update(self._zones, zone_id, patch)

    async def delete_zone(self, zone_id: str) -> bool:
        return self._zones.pop(zone_id, None) is not None

    # settings
    async def get_settings(self) -> Optional[AdSettings]:
        return self._settings

    async def update_settings(self, patch: AdSettingsPatch) -> AdSettings:
        self._settings = _apply_patch(self._settings or initial_settings(), patch)
        return self._settings


def _import_string(path: str):
    module_path, _, class_name = path.partition(":")
    if not module_path or not class_name:
        raise ValueError("ADS_REPOSITORY_IMPL must be 'module.sub:ClassName'")
    module = __import__(module_path, fromlist=[class_name])
    return getattr(module, class_name)


_repository: Optional[AdsRepositoryProtocol] = None


def get_ads_repository() -> AdsRepositoryProtocol:
    """
    Factory/dependency for the ads repository (one instance per process).

    `ADS_REPOSITORY_IMPL` (dotted `module:Class`) wins; otherwise
    `ADS_REPOSITORY=sql` selects `SqlAdsRepository` and anything else the
    in-memory repository.
    """
    global _repository
    if _repository is not None:
        return _repository
    impl_path = os.environ.get("ADS_REPOSITORY_IMPL")
    if impl_path:
        _repository = _import_string(impl_path)()
    elif settings.ADS_REPOSITORY == "sql":
        from moovie.repositories.ads_sql import SqlAdsRepository

        _repository = SqlAdsRepository()
    else:
        _repository = MemoryAdsRepository()
    return _repository


def set_ads_repository(repository: Optional[AdsRepositoryProtocol]) -> None:
    """Swap the process-wide repository (tests, embedding); None resets it."""
    global _repository
    _repository = repository


__all__ = [
    "AdsRepositoryProtocol",
    "MemoryAdsRepository",
    "initial_settings",
    "patch_changes",
    "get_ads_repository",
    "set_ads_repository",
]
