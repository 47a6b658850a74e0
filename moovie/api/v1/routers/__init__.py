"""
🧭 Moovie • API v1 Router Aggregator
====================================

Exports both the **combined `router`** (ready to include) and each **individual
sub-router** so callers can mount them as needed.

Quick usage
-----------
    from moovie.api.v1.routers import router as v1_router
    app.include_router(v1_router, prefix="/api/v1")

Security notes
--------------
- 🔐 This layer is a pure aggregator; **admin guards & rate limits live in child routers**.
- 🧊 Child routers set their own cache headers; those are preserved here.
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .public import ads_router


def build_v1_router() -> APIRouter:
    """
    Compose the API v1 surface into a single `APIRouter`.

    Returns
    -------
    fastapi.APIRouter
        A router that includes:
          • Public ad serving under `/ads`
          • Ad administration under `/admin/ads`
    """
    r = APIRouter()
    r.include_router(ads_router)
    r.include_router(admin_router, prefix="/admin")
    return r


router = build_v1_router()

__all__ = ["router", "build_v1_router", "admin_router", "ads_router"]
