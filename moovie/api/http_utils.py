from __future__ import annotations

"""
Moovie · HTTP Utilities
=======================

Shared helpers for the ads routers:

- `?id=` requirement and sanitization for admin mutations
- Visitor id resolution (cookie-backed, issued when missing)
"""

import re
import uuid
from typing import Optional, Tuple

from fastapi import Request, Response

from moovie.core.config import settings
from moovie.core.exceptions import AppException, MissingIdentifier

__all__ = [
    "require_record_id",
    "resolve_visitor_id",
    "issue_visitor_cookie",
]


# ─────────────────────────────────────────────────────────────────────────────
# 🧩 ID Sanitization
# ─────────────────────────────────────────────────────────────────────────────

_SANITIZE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def require_record_id(record_id: Optional[str]) -> str:
    """Validate the `?id=` of an admin mutation.

    Raises
    ------
    MissingIdentifier
        400 "ID required" when absent or blank.
    AppException
        400 when the format is invalid.
    """
    value = (record_id or "").strip()
    if not value:
        raise MissingIdentifier()
    if not _SANITIZE_ID_RE.match(value):
        raise AppException(status_code=400, message="Invalid id format")
    return value


# ─────────────────────────────────────────────────────────────────────────────
# 🍪 Visitor identity (frequency capping is per visitor)
# ─────────────────────────────────────────────────────────────────────────────

_VISITOR_RE = re.compile(r"^[0-9a-f]{32}$")


def resolve_visitor_id(request: Request) -> Tuple[str, bool]:
    """Return `(visitor_id, is_new)`. Malformed cookies are replaced."""
    current = (request.cookies.get(settings.VISITOR_COOKIE) or "").strip().lower()
    if _VISITOR_RE.match(current):
        return current, False
    return uuid.uuid4().hex, True


def issue_visitor_cookie(response: Response, visitor_id: str) -> None:
    response.set_cookie(
        settings.VISITOR_COOKIE,
        visitor_id,
        max_age=settings.VISITOR_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
