from __future__ import annotations

"""
Moovie — HTTP Rate Limiting (SlowAPI)
=====================================

Highlights
----------
- Per-client-IP keying (X-Forwarded-For / X-Real-IP / client.host).
- Exemptions: health/docs/static, configurable trusted IPs.
- Test/CI friendly:
    - `RATE_LIMIT_NAMESPACE`: prefixes keys so parallel runs don't collide.
    - `RATE_LIMIT_TEST_BYPASS`: disables limits when truthy.
- Backends: Redis via `RATELIMIT_STORAGE_URI` or in-memory fallback.

Environment
-----------
RATE_LIMIT_ENABLED           default: "true"
DEFAULT_RATE_LIMIT           default: "100/minute"
RATELIMIT_STORAGE_URI        default: "" (falls back to "memory://")
RATE_LIMIT_SKIP_PATHS        default: "/healthz,/readyz,/docs,/openapi.json,/static/"
RATE_LIMIT_TRUSTED_IPS       default: "" (comma separated)
RATE_LIMIT_NAMESPACE         default: ""
RATE_LIMIT_TEST_BYPASS       default: ""

Usage
-----
    from moovie.core.limiter import install_rate_limiter, rate_limit, rate_limit_exempt

    @router.get("/ads/placements")
    @rate_limit("120/minute")
    async def serve_placement(request: Request): ...
"""

import os
from typing import Callable, List, Optional, Set

from dotenv import load_dotenv
from loguru import logger
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request

load_dotenv()

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
DEFAULT_LIMIT = os.getenv("DEFAULT_RATE_LIMIT", "100/minute").strip()
STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "").strip()

SKIP_PATHS: List[str] = [
    p.strip()
    for p in os.getenv(
        "RATE_LIMIT_SKIP_PATHS",
        "/healthz,/readyz,/docs,/openapi.json,/static/",
    ).split(",")
    if p.strip()
]

TRUSTED_IPS: Set[str] = {ip.strip() for ip in os.getenv("RATE_LIMIT_TRUSTED_IPS", "").split(",") if ip.strip()}
NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "").strip()


def client_ip(request: Request) -> str:
    """
    Best-effort client IP:
    1) X-Forwarded-For (first hop)
    2) X-Real-IP
    3) ASGI client.host
    """
    try:
        xff = request.headers.get("x-forwarded-for")
        if xff:
            ip = xff.split(",")[0].strip()
            if ip:
                return ip
        xri = request.headers.get("x-real-ip")
        if xri:
            return xri.strip()
        return get_remote_address(request) or "unknown"
    except Exception:
        return "unknown"


def get_rate_limit_key(request: Request) -> str:
    key = f"ip:{client_ip(request)}"
    return f"{NAMESPACE}:{key}" if NAMESPACE else key


def _path_is_skipped(path: str) -> bool:
    for prefix in SKIP_PATHS:
        if prefix.endswith("/"):
            if path.startswith(prefix):
                return True
        elif path == prefix:
            return True
    return False


def should_exempt_request(request: Optional[Request]) -> bool:
    """
    Exempt a request when the global switch is off, the path is skipped, the
    client IP is trusted, or the test bypass is on. Env flags are re-read at
    request time so tests can toggle them without re-importing this module.
    """
    if os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() != "true":
        return True
    if request is None:
        return False
    try:
        if _path_is_skipped(request.url.path):
            return True
        if client_ip(request) in TRUSTED_IPS:
            return True
        if os.getenv("RATE_LIMIT_TEST_BYPASS", "").strip().lower() in {"1", "true", "yes", "on"}:
            return True
    except Exception as e:
        logger.warning(f"[RateLimit] exemption check failed; enforcing limits | err={e}")
    return False


def _build_default_limits() -> List[str]:
    return [chunk.strip() for chunk in DEFAULT_LIMIT.split(",") if chunk.strip()]


def _make_limiter() -> Optional[Limiter]:
    storage_uri = STORAGE_URI or "memory://"
    try:
        limiter = Limiter(
            key_func=get_rate_limit_key,
            default_limits=_build_default_limits(),
            headers_enabled=True,
            storage_uri=storage_uri,
        )
        logger.info(
            "✅ RateLimiter ready | enabled={} | default={} | storage={} | ns={}",
            RATE_LIMIT_ENABLED, _build_default_limits(), storage_uri, NAMESPACE,
        )
        return limiter
    except Exception as e:
        logger.error(f"❌ Failed to init Limiter; limits disabled | err={e}")
        return None


limiter: Optional[Limiter] = _make_limiter()


def _exempt_when(request: Optional[Request] = None) -> bool:
    req = request
    if req is None and limiter is not None:
        try:
            req = limiter._request_context.get()  # type: ignore[attr-defined]
        except Exception:
            req = None
    return should_exempt_request(req)


def rate_limit(*limits: str) -> Callable:
    """
    Apply per-route limits with Moovie exemptions.

    Decorated endpoints must accept `request: Request` and should return a
    `Response` (JSONResponse) so SlowAPI can attach its headers.
    """
    if limiter is None:
        def _noop(fn: Callable) -> Callable:
            return fn
        return _noop

    selected = list(limits) if limits else _build_default_limits()
    decorators = [limiter.limit(value, exempt_when=_exempt_when) for value in selected]

    def _apply(fn: Callable) -> Callable:
        for deco in reversed(decorators):
            fn = deco(fn)
        return fn
    return _apply


def rate_limit_exempt() -> Callable:
    """Explicitly exempt a route from limiting."""
    if limiter is None:
        def _noop(fn: Callable) -> Callable:
            return fn
        return _noop
    return limiter.exempt


def install_rate_limiter(app) -> None:
    """Attach SlowAPI middleware (skipped when RATE_LIMIT_ENABLED is false)."""
    if not limiter:
        logger.warning("RateLimiter not initialized; middleware not installed")
        return
    if not RATE_LIMIT_ENABLED:
        logger.info("RateLimiter disabled by env; middleware not installed")
        return
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    logger.info("✅ SlowAPI middleware installed")
