"""Custom exceptions and centralized exception handlers.

Services report expected outcomes as ``Failure`` values. This module is the
single place where a failure becomes an HTTP status and message.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .results import ErrorKind, Failure, Ok, Result, T


class AppException(Exception):
    """Base application exception with structured error response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.status_code = status_code or self.status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to RFC 7807 problem+json style response."""
        return {
            "error": self.error_code,
            "message": self.message,
            "status": self.status_code,
            **({"details": self.details} if self.details else {}),
        }


class NotFoundError(AppException):
    """Resource not found."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    message = "Resource not found"


class ValidationError(AppException):
    """Input violates a domain constraint."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    message = "Validation failed"


class AuthenticationError(AppException):
    """Authentication failed."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_FAILED"
    message = "Authentication required"


class ExternalServiceError(AppException):
    """The analysis engine rejected the request."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "ANALYSIS_REJECTED"
    message = "Factor analysis service rejected the request"


class DownstreamUnavailableError(AppException):
    """The analysis engine is unreachable or answered unexpectedly."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "ANALYSIS_SERVICE_UNAVAILABLE"
    message = "Factor analysis service is unavailable"


def exception_for_failure(failure: Failure) -> AppException:
    """Map an error kind to its wire status and message."""
    kind = failure.kind
    if kind is ErrorKind.VALIDATION_FAILURE:
        return ValidationError(message=failure.message)
    if kind is ErrorKind.UNAUTHENTICATED:
        # Never tell the caller why the credentials were refused
        return AuthenticationError()
    if kind is ErrorKind.RESOURCE_NOT_FOUND:
        return NotFoundError(message=failure.message)
    if kind is ErrorKind.DOWNSTREAM_REJECTED:
        return ExternalServiceError(
            message=failure.message,
            status_code=failure.status_code or status.HTTP_400_BAD_REQUEST,
        )
    if kind is ErrorKind.DOWNSTREAM_UNAVAILABLE:
        return DownstreamUnavailableError()
    return AppException()


def unwrap(result: Result[T]) -> T:
    """Return the value of a successful result or raise its HTTP translation."""
    if isinstance(result, Ok):
        return result.value
    raise exception_for_failure(result)


def register_exception_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers."""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers={"X-Request-ID": _request_id(request)},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in exc.errors()
        ]
        error = ValidationError(
            message="Invalid request data", details={"errors": details}
        )
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_dict(),
            headers={"X-Request-ID": _request_id(request)},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger = logging.getLogger("factorlens.error")
        logger.exception(
            "Unhandled exception",
            extra={
                "request_id": _request_id(request),
                "path": request.url.path,
                "method": request.method,
            },
        )

        from .config import settings

        if settings.debug:
            message = str(exc)
        else:
            message = "An unexpected error occurred"

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_ERROR",
                "message": message,
                "status": 500,
            },
            headers={"X-Request-ID": _request_id(request)},
        )


def _request_id(request: Request) -> str:
    context = getattr(request.state, "context", None)
    return getattr(context, "request_id", None) or "unknown"
