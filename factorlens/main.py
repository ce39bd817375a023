"""ASGI entry point."""

from __future__ import annotations

from factorlens.api.app import create_api_app
from factorlens.core.config import settings


# Application instance
app = create_api_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "factorlens.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
