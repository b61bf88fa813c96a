from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

Installed by `videomanager.main.create_app`. All HTTP errors are rendered as
application/problem+json with a stable schema; `AppException` subclasses add
`kind`, `request_id` and `details` so clients can branch without parsing
messages.
"""

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from videomanager.core.exceptions import AppException
from videomanager.middleware.request_id import get_request_id


def _problem(
    title: str,
    detail: str,
    status_code: int,
    request: Request,
    *,
    extra: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "type": "about:blank",
        "title": title,
        "detail": detail,
        "status": status_code,
        "instance": str(request.url),
    }
    if extra:
        content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=content,
        media_type="application/problem+json",
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    rid = get_request_id(request) or None
    if exc.status_code >= 500:
        logger.error("{} on {} {} | details={}", exc.kind, request.method, request.url.path, exc.details)
    return _problem(
        exc.kind,
        exc.message,
        exc.status_code,
        request,
        extra=exc.to_problem(request_id=rid),
        headers=getattr(exc, "headers", None),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _problem(title, detail, exc.status_code, request, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    detail = "Validation error"
    return _problem(
        detail,
        detail,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        request,
        extra={"kind": "ValidationError", "errors": exc.errors()},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return _problem("Internal Server Error", "An unexpected error occurred.", status.HTTP_500_INTERNAL_SERVER_ERROR, request)


def install_exception_handlers(app) -> None:
    """Register the handlers; `AppException` first so it wins over the generic HTTP handler."""
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
    "install_exception_handlers",
]
