"""
Admin: Ad zones

A zone binds a page position (e.g. `homepage_hero`) to an ad type, optionally
pinning one script, and carries the activation knobs (lazy load, popup
trigger/delay, frequency override).

Positions are unique per page; a clash answers 409. Every successful write
drops the engine's memoized zone list so the next placement sees it.

Endpoints (mounted under `/api/v1/admin`)
- GET    /ads/zones[?page=...]   public; bare JSON list
- POST   /ads/zones              admin
- PUT    /ads/zones?id=...       admin; partial update
- DELETE /ads/zones?id=...       admin
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from loguru import logger

from moovie.api.http_utils import require_record_id
from moovie.core.exceptions import AdEntityNotFound, ZonePositionConflict
from moovie.core.limiter import rate_limit
from moovie.dependencies.admin import ensure_admin
from moovie.repositories.ads import AdsRepositoryProtocol, get_ads_repository
from moovie.schemas.ads import AdPage, AdZone, AdZoneIn, AdZonePatch, MutationResult
from moovie.security_headers import set_sensitive_cache
from moovie.services.ads.zones import invalidate_zone_cache

router = APIRouter(tags=["Admin Ads"])


async def _ensure_position_free(
    repo: AdsRepositoryProtocol,
    page: AdPage,
    position: str,
    *,
    exclude_id: Optional[str] = None,
) -> None:
    for zone in await repo.list_zones(page=page):
        if zone.position == position and zone.id != exclude_id:
            raise ZonePositionConflict(page=page.value, position=position)


@router.get("/ads/zones", response_model=List[AdZone], summary="List ad zones")
@rate_limit("120/minute")
async def list_ad_zones(
    request: Request,
    response: Response,
    page: Optional[AdPage] = Query(None, description="Only zones placed on this page"),
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> List[AdZone]:
    set_sensitive_cache(response)
    return await repo.list_zones(page=page)


@router.post(
    "/ads/zones",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Create an ad zone",
)
@rate_limit("30/minute")
async def create_ad_zone(
    payload: AdZoneIn,
    request: Request,
    response: Response,
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    await _ensure_position_free(repo, payload.page, payload.position)
    created = await repo.create_zone(payload)
    invalidate_zone_cache()
    logger.info(
        "[AdminAds] zone created | id={} page={} position={}",
        created.id, created.page.value, created.position,
    )
    return MutationResult(id=created.id)


@router.put(
    "/ads/zones",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Update an ad zone",
)
@rate_limit("30/minute")
async def update_ad_zone(
    payload: AdZonePatch,
    request: Request,
    response: Response,
    record_id: Optional[str] = Query(None, alias="id"),
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    zone_id = require_record_id(record_id)
    current = await repo.get_zone(zone_id)
    if current is None:
        raise AdEntityNotFound(entity="zone", entity_id=zone_id)

    page = payload.page or current.page
    position = payload.position or current.position
    if (page, position) != (current.page, current.position):
        await _ensure_position_free(repo, page, position, exclude_id=zone_id)

    if await repo.update_zone(zone_id, payload) is None:
        raise AdEntityNotFound(entity="zone", entity_id=zone_id)
    invalidate_zone_cache()
    logger.info("[AdminAds] zone updated | id={}", zone_id)
    return MutationResult(id=zone_id)


@router.delete(
    "/ads/zones",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Delete an ad zone",
)
@rate_limit("30/minute")
async def delete_ad_zone(
    request: Request,
    response: Response,
    record_id: Optional[str] = Query(None, alias="id"),
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    zone_id = require_record_id(record_id)
    if not await repo.delete_zone(zone_id):
        raise AdEntityNotFound(entity="zone", entity_id=zone_id)
    invalidate_zone_cache()
    logger.info("[AdminAds] zone deleted | id={}", zone_id)
    return MutationResult(id=zone_id)


__all__ = ["router"]
