"""Public (unauthenticated) routers."""

from .ads import router as ads_router

__all__ = ["ads_router"]
