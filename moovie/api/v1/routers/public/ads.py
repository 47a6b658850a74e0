"""
Public Ads API
--------------
Server-side evaluation of ad placements for the calling visitor.

The page calls this once a slot's own activation rule fired (slot scrolled into
view, popup trigger hit). The engine then runs the full pipeline (settings,
zone, eligibility, script selection) and answers with ready-to-inject markup.

Routes
- GET /ads/placements      -> one placement: {displayed, adType, position, scriptId, html}
- GET /ads/header-scripts  -> site-wide head snippet ("" when ads are off)

Visitors are identified by the `moovie_vid` cookie (issued on first contact)
so popup frequency caps apply per visitor. Responses are never cached.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from moovie.api.http_utils import issue_visitor_cookie, resolve_visitor_id
from moovie.core.limiter import rate_limit
from moovie.dependencies.admin import admin_check_for
from moovie.schemas.ads import AdTrigger, BannerSize, PlacementOut
from moovie.security_headers import set_sensitive_cache
from moovie.services.ads.engine import AdEngine, PlacementKind, get_ad_engine

router = APIRouter(prefix="/ads", tags=["Public Ads"])


@router.get("/placements", response_model=PlacementOut, summary="Evaluate one ad placement")
@rate_limit("240/minute")
async def serve_placement(
    request: Request,
    response: Response,
    kind: PlacementKind = Query(...),
    size: Optional[BannerSize] = Query(None, description="Banner size, e.g. 728x90"),
    position: Optional[str] = Query(None, max_length=120, description="Zone position id"),
    trigger: Optional[AdTrigger] = Query(None, description="Popup trigger that fired"),
    delay: int = Query(0, ge=0, le=3600),
    engine: AdEngine = Depends(get_ad_engine),
) -> PlacementOut:
    set_sensitive_cache(response)
    visitor_id, is_new = resolve_visitor_id(request)
    if is_new:
        issue_visitor_cookie(response, visitor_id)
    return await engine.serve(
        kind,
        visitor_id=visitor_id,
        is_admin=admin_check_for(request),
        size=size.value if size else None,
        position=position or None,
        trigger=trigger,
        delay=delay,
    )


@router.get("/header-scripts", summary="Site-wide ad header snippet")
@rate_limit("240/minute")
async def header_scripts(
    request: Request,
    response: Response,
    engine: AdEngine = Depends(get_ad_engine),
) -> Dict[str, str]:
    set_sensitive_cache(response)
    html = await engine.header_scripts(is_admin=admin_check_for(request))
    return {"headerScripts": str(html)}


__all__ = ["router"]
