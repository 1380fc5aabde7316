"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Admin refusals, bad
revalidation requests and an unreachable store become JSON error bodies.
CacheError is never raised this far: cache services report it in results.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import BackofficeException
from app.shared.telemetry.tracing import get_trace_id

logger = logging.getLogger(__name__)

# HTTP status per error_code of exceptions raised by the cache endpoints
_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "CACHE_OPERATION_NOT_ALLOWED": 403,
    "CACHE_UNAVAILABLE": 503,
}


def _with_trace_id(content: dict[str, Any]) -> dict[str, Any]:
    trace_id = get_trace_id()
    if trace_id:
        content["trace_id"] = trace_id
    return content


def _backoffice_exception_handler(
    request: Request, exc: BackofficeException
) -> JSONResponse:
    """Return JSON from BackofficeException.to_dict() with appropriate status code."""
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    if status >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return JSONResponse(
        status_code=status,
        content=_with_trace_id(exc.to_dict()),
    )


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content=_with_trace_id(
            {
                "error": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": jsonable_encoder(exc.errors()),
            }
        ),
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_with_trace_id({"error": "HTTP_ERROR", "message": exc.detail}),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content=_with_trace_id({"error": "INTERNAL_ERROR", "message": detail}),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: BackofficeException (and
    subclasses), RequestValidationError, StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(BackofficeException, _backoffice_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
