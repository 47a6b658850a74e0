from __future__ import annotations

"""
Ads API exception handlers.

FastAPI integrates these via moovie/main.py. Every HTTP error renders the
mutation envelope used by the admin panel: `{"success": false, "error": "..."}`.
"""

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from moovie.core.exceptions import AppException


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _envelope(error: str, status_code: int, request: Request, **extra: Any) -> JSONResponse:
    body: Dict[str, Any] = {
        "success": False,
        "error": error,
        "request_id": _request_id(request) or "N/A",
    }
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    if isinstance(exc, AppException):
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(exc.to_envelope(fallback_request_id=_request_id(request))),
            headers=exc.headers,
        )
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _envelope(detail, exc.status_code, request)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    return _envelope(
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        request,
        errors=exc.errors(),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return _envelope("Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR, request)


def install_exception_handlers(app) -> None:
    """Register the envelope handlers on a FastAPI app."""
    from fastapi import HTTPException

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)           # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)             # type: ignore[arg-type]


__all__ = [
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
    "install_exception_handlers",
]
