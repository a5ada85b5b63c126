"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to the structured JSON body every client of the
verification API expects::

    {"success": false, "error": "...", "message": "...", "code": "..."}

Non-AppError exceptions are logged and answered with a generic 500.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"
    error: str = "Internal server error"

    def __init__(
        self,
        message: str,
        *,
        error: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {
            "success": False,
            "error": self.error,
            "message": self.message,
            "code": self.error_code,
        }
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


# ── Input errors (400) ────────────────────────────────────────────────────────


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"
    error = "Invalid request"


class MissingTokenError(ValidationError):
    error_code = "missing_token"
    error = "Missing token"


class MalformedTokenError(ValidationError):
    error_code = "invalid_token"
    error = "Invalid token"


class ExpiredTokenError(ValidationError):
    error_code = "token_expired"
    error = "Token expired"


# ── Authentication errors (401) ───────────────────────────────────────────────


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"
    error = "Not authenticated"


class MissingApiKeyError(AuthenticationError):
    error_code = "missing_key"
    error = "API key required"


class InvalidApiKeyError(AuthenticationError):
    error_code = "invalid_key"
    error = "Invalid API key"


class NotAuthenticatedError(AuthenticationError):
    error_code = "not_authenticated"
    error = "Not authenticated"


# ── Other client errors ───────────────────────────────────────────────────────


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"
    error = "Not found"


# ── Server-side errors ────────────────────────────────────────────────────────


class ConfigurationError(AppError):
    status_code = 500
    error_code = "not_configured"
    error = "Service not configured"


class UpstreamError(AppError):
    """A third-party call (OAuth token exchange, profile fetch) failed."""

    status_code = 502
    error_code = "upstream_error"
    error = "Upstream service failed"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error(
                "request_failed",
                path=request.url.path,
                error_code=exc.error_code,
                error=exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or None
        err = ValidationError(first.get("msg", "Invalid request body"), field=field)
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "message": "An internal server error occurred.",
                "code": "internal_error",
            },
        )
