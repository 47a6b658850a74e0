"""
Admin: Ad scripts

A script is the opaque third-party markup served for one ad type. It is stored
and returned untouched; the engine injects it verbatim.

Endpoints (mounted under `/api/v1/admin`)
- GET    /ads/scripts[?networkId=...]  public; bare JSON list
- POST   /ads/scripts                  admin
- PUT    /ads/scripts?id=...           admin; partial update
- DELETE /ads/scripts?id=...           admin
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from loguru import logger

from moovie.api.http_utils import require_record_id
from moovie.core.exceptions import AdEntityNotFound
from moovie.core.limiter import rate_limit
from moovie.dependencies.admin import ensure_admin
from moovie.repositories.ads import AdsRepositoryProtocol, get_ads_repository
from moovie.schemas.ads import AdScript, AdScriptIn, AdScriptPatch, MutationResult
from moovie.security_headers import set_sensitive_cache

router = APIRouter(tags=["Admin Ads"])


@router.get("/ads/scripts", response_model=List[AdScript], summary="List ad scripts")
@rate_limit("120/minute")
async def list_ad_scripts(
    request: Request,
    response: Response,
    network_id: Optional[str] = Query(None, alias="networkId"),
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> List[AdScript]:
    set_sensitive_cache(response)
    return await repo.list_scripts(network_id=network_id or None)


@router.post(
    "/ads/scripts",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Create an ad script",
)
@rate_limit("30/minute")
async def create_ad_script(
    payload: AdScriptIn,
    request: Request,
    response: Response,
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    created = await repo.create_script(payload)
    logger.info(
        "[AdminAds] script created | id={} type={} network={}",
        created.id, created.ad_type.value, created.network_id,
    )
    return MutationResult(id=created.id)


@router.put(
    "/ads/scripts",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Update an ad script",
)
@rate_limit("30/minute")
async def update_ad_script(
    payload: AdScriptPatch,
    request: Request,
    response: Response,
    record_id: Optional[str] = Query(None, alias="id"),
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    script_id = require_record_id(record_id)
    if await repo.update_script(script_id, payload) is None:
        raise AdEntityNotFound(entity="script", entity_id=script_id)
    logger.info("[AdminAds] script updated | id={}", script_id)
    return MutationResult(id=script_id)


@router.delete(
    "/ads/scripts",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Delete an ad script",
)
@rate_limit("30/minute")
async def delete_ad_script(
    request: Request,
    response: Response,
    record_id: Optional[str] = Query(None, alias="id"),
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    script_id = require_record_id(record_id)
    if not await repo.delete_script(script_id):
        raise AdEntityNotFound(entity="script", entity_id=script_id)
    logger.info("[AdminAds] script deleted | id={}", script_id)
    return MutationResult(id=script_id)


__all__ = ["router"]
