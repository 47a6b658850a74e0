# moovie/main.py
from __future__ import annotations

"""
# Moovie Ads API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the Moovie ad delivery engine:
ad administration (networks, scripts, zones, settings) and server-side
placement evaluation with per-visitor frequency capping.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Explicit **middleware order**:
  1) request id → 2) CORS → 3) gzip → 4) rate limits → 5) strip `Server` header.
- Centralized exception handling (`{"success": false, "error": ...}` envelope).
- Graceful local/dev behavior (best-effort infra connections, never crash on import).

## Probes
- `/healthz`: liveness (process up).
- `/readyz`: readiness (checks only the backends the config actually uses).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable
import os

from fastapi import FastAPI, Request
from loguru import logger
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from moovie.core import logger as _logsetup  # noqa: F401

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from moovie.api.v1.routers import router as api_v1_router
from moovie.core.config import settings
from moovie.core.exception_handlers import install_exception_handlers
from moovie.core.limiter import install_rate_limiter, rate_limit_exempt
from moovie.core.redis_client import redis_wrapper
from moovie.db.session import db_healthcheck, dispose_engine
from moovie.middleware.request_id import RequestIDMiddleware
from moovie.security_headers import configure_cors


def _uses_redis() -> bool:
    return settings.ADS_FREQUENCY_BACKEND == "redis"


def _uses_sql() -> bool:
    return settings.ADS_REPOSITORY == "sql"


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup:
        - Best-effort connect to Redis when it backs frequency capping. A
          failure is logged; capping then fails open.

    Shutdown:
        - Dispose the DB engine and close Redis (best-effort).
    """
    logger.info(
        "✅ Moovie Ads API starting up | repository={} frequency={} source={}",
        settings.ADS_REPOSITORY,
        settings.ADS_FREQUENCY_BACKEND,
        settings.ADS_SOURCE_BASE_URL or "in-process",
    )

    if _uses_redis():
        try:
            await redis_wrapper.connect()
        except Exception:
            logger.exception("Redis connect failed (frequency caps fail open)")

    try:
        yield
    finally:
        if _uses_sql():
            try:
                await dispose_engine()
                logger.info("🛑 Database engine disposed")
            except Exception:
                logger.exception("Error disposing DB engine")
        if _uses_redis():
            try:
                await redis_wrapper.close()
            except Exception:
                logger.exception("Error closing Redis client")
        logger.info("🛑 Moovie Ads API shutting down")


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: fully wired application with middleware, exception handlers,
        routers, and health/readiness endpoints.
    """
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    configure_cors(app)
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    install_rate_limiter(app)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        """Remove the `Server` header to avoid leaking implementation details."""
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    install_exception_handlers(app)

    # ── Routers (versioned API) ─────────────────────────────────────────────
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    @rate_limit_exempt()
    async def healthz() -> dict[str, bool]:
        """Liveness probe: `{"ok": true}` when the process is responsive."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    @rate_limit_exempt()
    async def readyz() -> JSONResponse:
        """
        Readiness probe. Only configured backends are checked; unused ones
        report `null`.
        """
        checks: dict[str, object] = {"db": None, "redis": None}
        if _uses_sql():
            checks["db"] = await db_healthcheck()
        if _uses_redis():
            checks["redis"] = await redis_wrapper.is_connected()
        ready = all(v is not False for v in checks.values())
        return JSONResponse({"ready": ready, "checks": checks}, status_code=200 if ready else 503)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Minimal root that points to docs (when enabled)."""
        return JSONResponse(
            {"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION}
        )

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn moovie.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "moovie.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        workers=int(os.getenv("WORKERS", "1")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
