"""
Admin: Ad networks

Networks group scripts by provider. Deleting a network leaves its scripts in
place (they keep the dangling `networkId`).

Endpoints (mounted under `/api/v1/admin`)
- GET    /ads/networks          public; bare JSON list
- POST   /ads/networks          admin
- PUT    /ads/networks?id=...   admin; partial update
- DELETE /ads/networks?id=...   admin
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from loguru import logger

from moovie.api.http_utils import require_record_id
from moovie.core.exceptions import AdEntityNotFound
from moovie.core.limiter import rate_limit
from moovie.dependencies.admin import ensure_admin
from moovie.repositories.ads import AdsRepositoryProtocol, get_ads_repository
from moovie.schemas.ads import AdNetwork, AdNetworkIn, AdNetworkPatch, MutationResult
from moovie.security_headers import set_sensitive_cache

router = APIRouter(tags=["Admin Ads"])


@router.get("/ads/networks", response_model=List[AdNetwork], summary="List ad networks")
@rate_limit("120/minute")
async def list_ad_networks(
    request: Request,
    response: Response,
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> List[AdNetwork]:
    set_sensitive_cache(response)
    return await repo.list_networks()


@router.post(
    "/ads/networks",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Create an ad network",
)
@rate_limit("30/minute")
async def create_ad_network(
    payload: AdNetworkIn,
    request: Request,
    response: Response,
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    created = await repo.create_network(payload)
    logger.info("[AdminAds] network created | id={} name={}", created.id, created.name)
    return MutationResult(id=created.id)


@router.put(
    "/ads/networks",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Update an ad network",
)
@rate_limit("30/minute")
async def update_ad_network(
    payload: AdNetworkPatch,
    request: Request,
    response: Response,
    record_id: Optional[str] = Query(None, alias="id"),
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    network_id = require_record_id(record_id)
    if await repo.update_network(network_id, payload) is None:
        raise AdEntityNotFound(entity="network", entity_id=network_id)
    logger.info("[AdminAds] network updated | id={}", network_id)
    return MutationResult(id=network_id)


@router.delete(
    "/ads/networks",
    response_model=MutationResult,
    dependencies=[Depends(ensure_admin)],
    summary="Delete an ad network",
)
@rate_limit("30/minute")
async def delete_ad_network(
    request: Request,
    response: Response,
    record_id: Optional[str] = Query(None, alias="id"),
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    network_id = require_record_id(record_id)
    if not await repo.delete_network(network_id):
        raise AdEntityNotFound(entity="network", entity_id=network_id)
    logger.info("[AdminAds] network deleted | id={}", network_id)
    return MutationResult(id=network_id)


__all__ = ["router"]
