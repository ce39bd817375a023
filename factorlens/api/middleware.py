"""Request pipeline and HTTP middlewares.

Inbound requests run through an ordered list of step functions before they
reach a route. Each step receives the request and the current
``RequestContext`` and returns either a new context or a ``Response``; a
``Response`` short-circuits the rest of the pipeline and the route. The
final context is stored on ``request.state.context``.
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable, Optional, Sequence, Union

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from factorlens.core.config import settings
from factorlens.core.identity import Identity, RequestContext
from factorlens.core.logging import get_logger, request_id_var
from factorlens.core.results import Failure
from factorlens.core.security import TokenService


logger = get_logger("api.middleware")

BEARER_PREFIX = "Bearer "

StepResult = Union[RequestContext, Response]
RequestStep = Callable[[Request, RequestContext], Awaitable[StepResult]]
IdentityResolver = Callable[[str], Awaitable[Optional[Identity]]]


def get_request_context(request: Request) -> RequestContext:
    """Context established by the pipeline (empty if the pipeline did not run)."""
    return getattr(request.state, "context", None) or RequestContext()


async def assign_request_id(request: Request, context: RequestContext) -> StepResult:
    """Propagate ``X-Request-ID`` or mint one for tracing."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request_id_var.set(request_id)
    return context.with_request_id(request_id)


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def build_authentication_step(
    tokens: TokenService, resolve_identity: IdentityResolver
) -> RequestStep:
    """Step that attaches the caller's identity when a valid bearer token is sent.

    It never rejects a request. Missing, foreign-scheme or malformed
    credentials leave the request unauthenticated; protected routes refuse it
    later, public routes do not need an identity.
    """

    async def authenticate(request: Request, context: RequestContext) -> StepResult:
        token = bearer_token(request)
        if token is None:
            return context

        subject = tokens.extract_subject(token)
        if isinstance(subject, Failure):
            return context

        if context.identity is not None:
            return context

        identity = await resolve_identity(subject.value)
        if identity is None or not tokens.is_valid(token, identity.email):
            return context

        return context.with_identity(identity)

    return authenticate


class RequestPipelineMiddleware(BaseHTTPMiddleware):
    """Runs the request steps in order before handing over to the route."""

    def __init__(self, app: ASGIApp, steps: Sequence[RequestStep]):
        super().__init__(app)
        self._steps = tuple(steps)

    async def dispatch(self, request: Request, call_next):
        context = get_request_context(request)
        for step in self._steps:
            outcome = await step(request, context)
            if isinstance(outcome, Response):
                return outcome
            context = outcome
        request.state.context = context

        response = await call_next(request)
        if context.request_id:
            response.headers["X-Request-ID"] = context.request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests with sensitive data scrubbing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.monotonic()

        response = await call_next(request)

        duration = time.monotonic() - start_time

        # Path only; query strings are not logged
        path = request.url.path

        logger.info(
            f"{request.method} {path} -> {response.status_code} ({duration:.3f}s)",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": int(duration * 1000),
            },
        )

        return response
