# moovie/security_headers.py
from __future__ import annotations

"""
# Moovie — Cache & CORS helpers

- `set_sensitive_cache()` marks admin/visitor-specific responses `no-store`.
- `configure_cors()` installs an allow-list CORS policy from env.

No CSP is installed here: ad payloads are third-party markup injected
verbatim and a strict script policy would block them.
"""

from typing import Iterable, Optional

from fastapi import Response
from starlette.middleware.cors import CORSMiddleware

from moovie.core.config import settings


def set_sensitive_cache(response: Response, *, seconds: int = 0) -> None:
    """
    Mark a response as sensitive for caching.

    `seconds > 0` enables a short **private** cache and adds
    `Vary: Cookie` so shared caches never mix visitors.
    """
    if seconds <= 0:
        response.headers["Cache-Control"] = "no-store"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return
    response.headers["Cache-Control"] = f"private, max-age={seconds}"
    vary = response.headers.get("Vary")
    existing = {v.strip() for v in (vary or "").split(",") if v.strip()}
    response.headers["Vary"] = ", ".join(sorted(existing | {"Cookie"}))


def configure_cors(app, *, allow_methods: Optional[Iterable[str]] = None) -> None:
    """Install CORS for the configured frontend origins (localhost in dev)."""
    origins = settings.frontend_origins_list
    if not origins and not settings.is_production:
        origins = ["http://localhost:3000", "http://localhost:8000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=list(allow_methods or ["GET", "HEAD", "OPTIONS", "POST", "PUT", "DELETE"]),
        allow_headers=["Content-Type", "X-Admin-Token", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )


__all__ = ["set_sensitive_cache", "configure_cors"]
