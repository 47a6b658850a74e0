# moovie/core/exceptions.py
from __future__ import annotations

"""
Moovie — Application Exceptions
===============================
A small layer on top of FastAPI's `HTTPException` that carries structured
metadata and renders into the ads API error envelope via
`moovie.core.exception_handlers`.

Key ideas
---------
- One base `AppException` that carries `code`, `request_id`, `details`, `extra`.
- Domain exceptions inherit from it and set sane defaults.
- `to_envelope()` renders `{"success": false, "error": ...}` for handlers.

Usage
-----
    raise AdEntityNotFound(entity="zone", entity_id=zone_id)
    raise MissingIdentifier()
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "AdEntityNotFound",
    "MissingIdentifier",
    "ZonePositionConflict",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code (e.g., 400/403/404/409/500).
    message : str
        Human-readable error message (also serialized as `detail`).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    request_id : str | None
        Optional request correlation id.
    details : Any
        Machine-readable details (e.g., ids, constraints).
    extra : dict | None
        Additional non-sensitive metadata surfaced to clients.
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        request_id: Optional[str] = None,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.request_id: Optional[str] = request_id
        self.details: Optional[Any] = details
        self.extra: Dict[str, Any] = extra or {}

    def to_envelope(self, *, fallback_request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return the ads API error envelope for this exception."""
        body: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "request_id": self.request_id or fallback_request_id or "N/A",
        }
        if self.details is not None:
            body["details"] = self.details
        extra_sanitized = dict(self.extra)
        for k in ("token", "authorization", "password", "secret"):
            extra_sanitized.pop(k, None)
        body.update(extra_sanitized)
        return body


# ──────────────────────────────────────────────────────────────
# 📣 Ad domain exceptions
# ──────────────────────────────────────────────────────────────
class AdEntityNotFound(AppException):
    """Raised when a network/script/zone id does not resolve."""

    def __init__(self, *, entity: str, entity_id: str, request_id: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message=f"Ad {entity} not found",
            request_id=request_id,
            details={"entity": entity, "id": entity_id},
        )


class MissingIdentifier(AppException):
    """Raised when a `?id=` query parameter is required but absent."""

    def __init__(self, *, request_id: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message="ID required",
            request_id=request_id,
        )


class ZonePositionConflict(AppException):
    """Raised when another zone on the same page already owns a position."""

    def __init__(self, *, page: str, position: str, request_id: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            message="Zone position already in use",
            request_id=request_id,
            details={"page": page, "position": position},
        )
