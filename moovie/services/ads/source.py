# moovie/services/ads/source.py
from __future__ import annotations

"""
Moovie — Ad Data Sources
========================

The engine never talks to storage directly. It reads settings, scripts and
zones through an `AdSource`:

- `RepositoryAdSource` reads the configured ads repository in-process.
- `HttpAdSource` reads the public admin GET endpoints over HTTP (httpx), for a
  serving tier deployed apart from the admin tier. Records that do not
  validate are skipped with a warning.

Sources raise on transport or storage failure; callers decide how to degrade
(`load_ad_settings()` falls back to defaults, the selector and zone cache to an
empty list).
"""

from typing import Any, List, Optional, Protocol, Type, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from moovie.core.config import settings
from moovie.repositories.ads import AdsRepositoryProtocol, initial_settings
from moovie.schemas.ads import AdScript, AdSettings, AdZone

M = TypeVar("M", bound=BaseModel)


class AdSource(Protocol):
    async def fetch_settings(self) -> Optional[AdSettings]: ...
    async def fetch_scripts(self) -> List[AdScript]: ...
    async def fetch_zones(self) -> List[AdZone]: ...


class RepositoryAdSource:
    """In-process source backed by an `AdsRepositoryProtocol`."""

    def __init__(self, repository: AdsRepositoryProtocol) -> None:
        self.repository = repository

    async def fetch_settings(self) -> Optional[AdSettings]:
        return await self.repository.get_settings()

    async def fetch_scripts(self) -> List[AdScript]:
        return await self.repository.list_scripts()

    async def fetch_zones(self) -> List[AdZone]:
        return await self.repository.list_zones()


class HttpAdSource:
    """Reads `GET {base}/api/v1/admin/ads/{settings,scripts,zones}`."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.prefix = f"{settings.API_V1_STR}/admin/ads"
        self.timeout = timeout or settings.ADS_SOURCE_TIMEOUT_SECONDS
        self._transport = transport

    async def _get_json(self, resource: str) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            resp = await client.get(f"{self.prefix}/{resource}")
            resp.raise_for_status()
            return resp.json()

    @staticmethod
    def _parse_many(model: Type[M], rows: Any, resource: str) -> List[M]:
        if not isinstance(rows, list):
            raise ValueError(f"expected a JSON list from /{resource}")
        out: List[M] = []
        for row in rows:
            try:
                out.append(model.model_validate(row))
            except ValidationError as e:
                logger.warning("[Ads] skipping malformed {} record | errors={}", resource, e.error_count())
        return out

    async def fetch_settings(self) -> Optional[AdSettings]:
        data = await self._get_json("settings")
        if not data:
            return None
        return AdSettings.model_validate(data)

    async def fetch_scripts(self) -> List[AdScript]:
        return self._parse_many(AdScript, await self._get_json("scripts"), "scripts")

    async def fetch_zones(self) -> List[AdZone]:
        return self._parse_many(AdZone, await self._get_json("zones"), "zones")


def default_ad_settings() -> AdSettings:
    return initial_settings()


async def load_ad_settings(source: AdSource) -> AdSettings:
    """Current settings, or the defaults when absent or unreadable."""
    try:
        found = await source.fetch_settings()
    except Exception as e:  # noqa: BLE001
        logger.warning("[Ads] settings unavailable; using defaults | err={!r}", e)
        return default_ad_settings()
    return found or default_ad_settings()


__all__ = [
    "AdSource",
    "RepositoryAdSource",
    "HttpAdSource",
    "default_ad_settings",
    "load_ad_settings",
]
