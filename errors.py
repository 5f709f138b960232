"""
Typed application errors and their HTTP rendering.

Services raise AppError subclasses; register_error_handlers() turns them into
``{"error", "code", "field"?, "details"?}`` JSON bodies with the class's
status code.

ValidationError and NotFoundError are raised before any mutation.
DependencyError is reserved for a failing collaborator on a primary path
(e.g. the profile-image upload); best-effort side effects never raise it.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        body: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            body["field"] = self.field
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    """No authenticated actor is attached to the request."""

    status_code = 401
    error_code = "authentication_error"


class ForbiddenError(AppError):
    """The authenticated actor may not perform this transition."""

    status_code = 403
    error_code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class DependencyError(AppError):
    """An external collaborator (object store, mailer) failed on a primary path."""

    status_code = 502
    error_code = "dependency_failure"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error(
                "request_dependency_failed",
                path=request.url.path,
                error=exc.message,
                error_code=exc.error_code,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry has already captured it when configured
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
