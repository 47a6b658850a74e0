"""
Admin: Ad settings (singleton)

- GET /ads/settings   public; the stored settings, or the defaults when none
                      were saved yet
- PUT /ads/settings   admin; partial update (creates the settings on first write)
"""

from fastapi import APIRouter, Depends, Request, Response
from loguru import logger

from moovie.core.limiter import rate_limit
from moovie.dependencies.admin import ensure_admin
from moovie.repositories.ads import AdsRepositoryProtocol, get_ads_repository
from moovie.schemas.ads import AdSettings, AdSettingsPatch, MutationResult
from moovie.security_headers import set_sensitive_cache
from moovie.services.ads.source import default_ad_settings

router = APIRouter(tags=["Admin Ads"])


@router.get("/ads/settings", response_model=AdSettings, summary="Get ad settings")
@rate_limit("120/minute")
async def get_ad_settings(
    request: Request,
    response: Response,
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> AdSettings:
    set_sensitive_cache(response)
    return await repo.get_settings() or default_ad_settings()


@router.put(
    "/ads/settings",
    response_model=MutationResult,
    response_model_exclude_none=True,
    dependencies=[Depends(ensure_admin)],
    summary="Update ad settings",
)
@rate_limit("30/minute")
async def update_ad_settings(
    payload: AdSettingsPatch,
    request: Request,
    response: Response,
    repo: AdsRepositoryProtocol = Depends(get_ads_repository),
) -> MutationResult:
    set_sensitive_cache(response)
    updated = await repo.update_settings(payload)
    logger.info(
        "[AdminAds] settings updated | master={} test_mode={} popup_cap={}",
        updated.master_enabled, updated.test_mode, updated.popup_frequency_cap,
    )
    return MutationResult()


__all__ = ["router"]
