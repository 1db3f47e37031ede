"""Exception handlers mapping every failure onto the error envelope."""

import asyncpg
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shram_setu.api.responses import error_response
from shram_setu.config import get_settings
from shram_setu.errors import AppError, AuthenticationError

logger = structlog.get_logger(__name__)

# Unique index name -> public field name
UNIQUE_FIELDS = {
    "idx_users_email": "email",
}


def _correlation_id(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)


def _validation_messages(exc: RequestValidationError) -> list[str]:
    """Flatten pydantic errors into ``"field: message"`` strings."""
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        msg = error.get("msg", "Invalid value").removeprefix("Value error, ")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return messages


def register_error_handlers(app: FastAPI) -> None:
    """Attach the handlers for operational, validation, database and unknown errors."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        logger.warning(
            "request_failed",
            correlation_id=_correlation_id(request),
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            detail=exc.message,
            path=request.url.path,
        )
        headers = None
        if isinstance(exc, AuthenticationError):
            headers = {"WWW-Authenticate": "Bearer"}
        return error_response(exc.status_code, exc.message, exc.errors, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = _validation_messages(exc)
        logger.warning(
            "validation_error",
            correlation_id=_correlation_id(request),
            errors=messages,
            path=request.url.path,
        )
        return error_response(400, "Validation failed", messages)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(
            exc.status_code,
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(asyncpg.UniqueViolationError)
    async def unique_violation_handler(
        request: Request, exc: asyncpg.UniqueViolationError
    ) -> JSONResponse:
        field = UNIQUE_FIELDS.get(getattr(exc, "constraint_name", None) or "", "field")
        logger.warning(
            "unique_violation",
            correlation_id=_correlation_id(request),
            field=field,
        )
        return error_response(
            400, f"Duplicate value for {field}. This {field} already exists."
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            correlation_id=_correlation_id(request),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        errors = None
        if not get_settings().is_production:
            errors = [f"{type(exc).__name__}: {exc}"]
        return error_response(500, "Internal Server Error", errors)
