from __future__ import annotations

"""
Admin guards
------------
Admin authentication is mocked for the ad engine: a request counts as admin
when it carries the admin session cookie, or an `X-Admin-Token` header equal to
`ADMIN_API_TOKEN` (machine clients such as a separate admin tier).

Exports
- is_admin_request(request): best-effort admin check, never raises
- ensure_admin: FastAPI dependency raising 403 for non-admins
- admin_check_for(request): zero-arg callable for the eligibility gate
"""

import hmac

from fastapi import HTTPException, Request, status

from moovie.core.config import settings
from moovie.services.ads.eligibility import AdminCheck

ADMIN_TOKEN_HEADER = "X-Admin-Token"


def is_admin_request(request: Request) -> bool:
    if settings.ADMIN_SESSION_COOKIE in request.cookies:
        return True
    expected = settings.ADMIN_API_TOKEN.get_secret_value() if settings.ADMIN_API_TOKEN else ""
    supplied = request.headers.get(ADMIN_TOKEN_HEADER) or ""
    return bool(expected) and hmac.compare_digest(supplied.encode(), expected.encode())


async def ensure_admin(request: Request) -> None:
    if not is_admin_request(request):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def admin_check_for(request: Request) -> AdminCheck:
    return lambda: is_admin_request(request)


__all__ = ["ADMIN_TOKEN_HEADER", "is_admin_request", "ensure_admin", "admin_check_for"]
