"""API application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from factorlens.core.config import settings
from factorlens.core.exceptions import register_exception_handlers
from factorlens.core.logging import get_logger, setup_logging
from factorlens.schemas.common import ErrorResponse

from .dependencies import Services, build_services
from .middleware import (
    RequestLoggingMiddleware,
    RequestPipelineMiddleware,
    SecurityHeadersMiddleware,
    assign_request_id,
    build_authentication_step,
)
from .routes import analysis, auth, health, holdings


logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - initialize and cleanup resources."""
    from factorlens.database.connection import (
        close_sqlalchemy_engine,
        init_sqlalchemy_engine,
    )

    setup_logging()

    try:
        await init_sqlalchemy_engine()
    except Exception as e:
        logger.warning(f"Database initialization failed (may be ok in tests): {e}")

    yield

    try:
        await close_sqlalchemy_engine()
    except Exception as e:
        logger.warning(f"Database cleanup failed: {e}")


def create_api_app(services: Optional[Services] = None) -> FastAPI:
    """Create and configure the API application.

    ``services`` replaces the default database-backed wiring, which is how
    tests substitute in-memory repositories and a stubbed analysis engine.
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Portfolio holdings and Fama-French five-factor analysis API",
        root_path=settings.root_path,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        responses={
            400: {"model": ErrorResponse, "description": "Bad Request"},
            401: {"model": ErrorResponse, "description": "Unauthorized"},
            404: {"model": ErrorResponse, "description": "Not Found"},
            500: {"model": ErrorResponse, "description": "Internal Server Error"},
            502: {"model": ErrorResponse, "description": "Bad Gateway"},
        },
    )

    services = services or build_services()
    app.state.services = services

    # Starlette wraps in reverse: the last middleware added is the outermost
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        RequestPipelineMiddleware,
        steps=[
            assign_request_id,
            build_authentication_step(services.tokens, services.resolve_identity),
        ],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS - strict configuration (no wildcards with credentials)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(holdings.router, tags=["Holdings"])
    app.include_router(analysis.router, tags=["Analysis"])

    return app
