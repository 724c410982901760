"""Typed application errors and their mapping onto the JSON response envelope.

Domain code raises an AppError subclass carrying its HTTP status; the handlers
registered by register_exception_handlers() turn every error (typed, request
validation, Starlette HTTP errors, and anything unhandled) into
``{"success": false, "message": ..., "errors"?: [...]}``.
"""
import logging
import re
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that carry an HTTP status and a client-safe message."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Validation errors"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls(errors=[{"field": field, "message": message}])


class AuthenticationFailure(AppError):
    status_code = 401
    default_message = "Unauthorized - Invalid or expired token"

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class InvalidCredentials(AuthenticationFailure):
    default_message = "Invalid email or password"


class InvalidOrExpiredToken(AuthenticationFailure):
    """Every token verification failure; subclasses only matter for logging."""

    default_message = "Invalid or expired token"
    reason = "invalid"


class AuthorizationFailure(AppError):
    status_code = 403
    default_message = "Forbidden - You do not have permission to access this resource"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Duplicate entry"

    def __init__(self, message: str | None = None, *, field: str | None = None) -> None:
        self.field = field
        if message is None and field:
            message = f"{field} already exists"
        errors = [{"field": field, "message": message}] if field else None
        super().__init__(message, errors=errors)


class InternalError(AppError):
    status_code = 500


# SQLite, PostgreSQL and MySQL phrase unique violations differently.
_UNIQUE_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: (?P<table>\w+)\.(?P<column>\w+)"),
    re.compile(r"Key \((?P<column>\w+)(?:,\s*\w+)*\)=\("),
    re.compile(r"Duplicate entry .* for key '(?:(?P<table>\w+)\.)?(?P<column>\w+)'"),
)


def _strip_index_name(name: str, table: str | None) -> str:
    """MySQL reports the index (ix_users_email), not the column."""
    if not name.startswith("ix_"):
        return name
    name = name[3:]
    if table and name.startswith(f"{table}_"):
        return name[len(table) + 1:]
    return name


def unique_violation_field(exc: IntegrityError) -> str | None:
    """Name the column behind a unique-constraint violation, if it can be read."""
    text = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in _UNIQUE_PATTERNS:
        match = pattern.search(text)
        if match:
            return _strip_index_name(match.group("column"), match.groupdict().get("table"))
    return None


def conflict_from_integrity(exc: IntegrityError, message: str | None = None) -> Conflict:
    """Translate a store IntegrityError into a Conflict naming the offending field."""
    field = unique_violation_field(exc)
    return Conflict(message, field=field or "resource")


def error_body(message: str, errors: list[dict[str, Any]] | None = None, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Install the handlers that render every error as the standard envelope."""

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.errors),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content=error_body("Validation errors", errors))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Not Found - {request.url.path}"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        extra = {"error": repr(exc)} if debug else {}
        return JSONResponse(status_code=500, content=error_body("Internal server error", **extra))
