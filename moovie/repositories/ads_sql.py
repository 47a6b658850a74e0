from __future__ import annotations

"""SQLAlchemy (async) implementation of the ads repository.

Each call runs in its own short transaction through `session_scope()`. Rows
are converted to the pydantic records before the session closes.
"""

from typing import Any, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from moovie.db import models
from moovie.db.session import session_scope
from moovie.repositories.ads import AdsRepositoryProtocol, initial_settings, patch_changes
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


class SqlAdsRepository(AdsRepositoryProtocol):
    def __init__(self, session_maker: Optional[async_sessionmaker[AsyncSession]] = None):
        self._maker = session_maker

    def _scope(self):
        return session_scope(self._maker)

    # ── generic helpers ──────────────────────────────────────
    async def _list(self, orm: Type[Any], schema: Type[Any], *filters) -> List[Any]:
        async with self._scope() as db:
            stmt = select(orm).where(*filters).order_by(orm.created_at, orm.id)
            rows = (await db.execute(stmt)).scalars().all()
            return [schema.model_validate(r, from_attributes=True) for r in rows]

    async def _get(self, orm: Type[Any], schema: Type[Any], record_id: str):
        async with self._scope() as db:
            row = await db.get(orm, record_id)
            return schema.model_validate(row, from_attributes=True) if row is not None else None

    async def _create(self, orm: Type[Any], schema: Type[Any], data) -> Any:
        async with self._scope() as db:
            row = orm(**data.model_dump())
            db.add(row)
            await db.flush()
            await db.refresh(row)
            return schema.model_validate(row, from_attributes=True)

    async def _update(self, orm: Type[Any], schema: Type[Any], record_id: str, patch) -> Any:
        async with self._scope() as db:
            row = await db.get(orm, record_id)
            if row is None:
                return None
            for key, value in patch_changes(patch).items():
                setattr(row, key, value)
            await db.flush()
            await db.refresh(row)
            return schema.model_validate(row, from_attributes=True)

    async def _delete(self, orm: Type[Any], record_id: str) -> bool:
        async with self._scope() as db:
            row = await db.get(orm, record_id)
            if row is None:
                return False
            await db.delete(row)
            return True

    # ── networks ─────────────────────────────────────────────
    async def list_networks(self) -> List[AdNetwork]:
        return await self._list(models.AdNetwork, AdNetwork)

    async def get_network(self, network_id: str) -> Optional[AdNetwork]:
        return await self._get(models.AdNetwork, AdNetwork, network_id)

    async def create_network(self, data: AdNetworkIn) -> AdNetwork:
        return await self._create(models.AdNetwork, AdNetwork, data)

    async def update_network(self, network_id: str, patch: AdNetworkPatch) -> Optional[AdNetwork]:
        return await self._update(models.AdNetwork, AdNetwork, network_id, patch)

    async def delete_network(self, network_id: str) -> bool:
        return await self._delete(models.AdNetwork, network_id)

    # ── scripts ──────────────────────────────────────────────
    async def list_scripts(self, network_id: Optional[str] = None) -> List[AdScript]:
        filters = [models.AdScript.network_id == network_id] if network_id else []
        return await self._list(models.AdScript, AdScript, *filters)

    async def get_script(self, script_id: str) -> Optional[AdScript]:
        return await self._get(models.AdScript, AdScript, script_id)

    async def create_script(self, data: AdScriptIn) -> AdScript:
        return await self._create(models.AdScript, AdScript, data)

    async def update_script(self, script_id: str, patch: AdScriptPatch) -> Optional[AdScript]:
        return await self._update(models.AdScript, AdScript, script_id, patch)

    async def delete_script(self, script_id: str) -> bool:
        return await self._delete(models.AdScript, script_id)

    # ── zones ────────────────────────────────────────────────
    async def list_zones(self, page: Optional[AdPage] = None) -> List[AdZone]:
        filters = [models.AdZone.page == page] if page is not None else []
        return await self._list(models.AdZone, AdZone, *filters)

    async def get_zone(self, zone_id: str) -> Optional[AdZone]:
        return await self._get(models.AdZone, AdZone, zone_id)

    async def create_zone(self, data: AdZoneIn) -> AdZone:
        return await self._create(models.AdZone, AdZone, data)

    async def update_zone(self, zone_id: str, patch: AdZonePatch) -> Optional[AdZone]:
        return await self._update(models.AdZone, AdZone, zone_id, patch)

    async def delete_zone(self, zone_id: str) -> bool:
        return await self._delete(models.AdZone, zone_id)

    # ── settings ─────────────────────────────────────────────
    async def get_settings(self) -> Optional[AdSettings]:
        async with self._scope() as db:
            row = await db.get(models.AdSettings, models.SETTINGS_ROW_ID)
            return AdSettings.model_validate(row, from_attributes=True) if row is not None else None

    async def update_settings(self, patch: AdSettingsPatch) -> AdSettings:
        async with self._scope() as db:
            row = await db.get(models.AdSettings, models.SETTINGS_ROW_ID)
            if row is None:
                row = models.AdSettings(id=models.SETTINGS_ROW_ID, **initial_settings().model_dump())
                db.add(row)
            for key, value in patch_changes(patch).items():
                setattr(row, key, value)
            await db.flush()
            await db.refresh(row)
            return AdSettings.model_validate(row, from_attributes=True)


__all__ = ["SqlAdsRepository"]
