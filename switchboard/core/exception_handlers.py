"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from switchboard.core.config import get_settings
from switchboard.domain.exceptions import SwitchboardException

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status
_ERROR_CODE_STATUS: dict[str, int] = {
    "INVALID_KEY": 400,
    "TENANT_MISMATCH": 403,
    "WORKFLOW_NOT_FOUND": 404,
    "DUPLICATE_RESPONSE": 409,
    "INVALID_ACTION": 400,
    "ALREADY_COMPLETED": 409,
    "DELIVERY_ERROR": 502,
    "WAIT_CANCELLED": 409,
    "VALIDATION_ERROR": 400,
    "RESOURCE_NOT_FOUND": 404,
    "TENANT_NOT_FOUND": 404,
    "AUTHENTICATION_ERROR": 401,
    "SERVICE_UNAVAILABLE": 503,
}


def status_for(exc: SwitchboardException) -> int:
    return _ERROR_CODE_STATUS.get(exc.error_code, 400)


def _switchboard_exception_handler(request: Request, exc: SwitchboardException) -> JSONResponse:
    """Return JSON from SwitchboardException.to_dict() with the mapped status code."""
    status = status_for(exc)
    if status >= 500:
        logger.warning("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Validation errors without the non-serializable ctx objects pydantic may attach."""
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(status_code=500, content={"error": "INTERNAL_ERROR", "message": detail})


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""
    app.add_exception_handler(SwitchboardException, _switchboard_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
