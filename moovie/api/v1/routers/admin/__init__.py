"""
Admin router package (v1)
=========================

Ad-engine administration by resource:
- ad_networks, ad_scripts, ad_zones, ad_settings

Design
------
• Each submodule defines its own `APIRouter` (admin guard, rate limits, tags).
• This package aggregates them into a single `router` export.
• Mount with a base path in your app:
    app.include_router(admin_v1.router, prefix="/api/v1/admin")

Notes
-----
• GETs are public: the ad engine (possibly on another tier) reads them.
• We add common 403/429 response docs at include-time for a uniform OpenAPI.
"""

from typing import Any, Dict, Iterable, Optional

from fastapi import APIRouter, status

from .ad_networks import router as ad_networks_router
from .ad_scripts import router as ad_scripts_router
from .ad_settings import router as ad_settings_router
from .ad_zones import router as ad_zones_router


# ─────────────────────────────────────────────────────────────────────────────
# 📋 Common OpenAPI responses (docs-only; behavior unchanged)
# ─────────────────────────────────────────────────────────────────────────────

COMMON_ADMIN_RESPONSES: Dict[int, Dict[str, Any]] = {
    status.HTTP_403_FORBIDDEN: {"description": "Forbidden (admin only)"},
    status.HTTP_429_TOO_MANY_REQUESTS: {"description": "Rate limit exceeded"},
}


def build_admin_router(
    *,
    extra_responses: Optional[Dict[int, Dict[str, Any]]] = None,
    include: Optional[Iterable[APIRouter]] = None,
) -> APIRouter:
    """Create a fresh admin router aggregate (all ad routers by default)."""
    r = APIRouter()
    responses = {**COMMON_ADMIN_RESPONSES, **(extra_responses or {})}
    subrouters = list(include) if include is not None else [
        ad_settings_router,
        ad_networks_router,
        ad_scripts_router,
        ad_zones_router,
    ]
    for sr in subrouters:
        r.include_router(sr, responses=responses)
    return r


router = build_admin_router()  # callers mount with prefix="/api/v1/admin"


__all__ = [
    "router",
    "build_admin_router",
    "COMMON_ADMIN_RESPONSES",
    "ad_networks_router",
    "ad_scripts_router",
    "ad_settings_router",
    "ad_zones_router",
]
