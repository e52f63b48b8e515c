"""
FastAPI application entrypoint for the FetchIt OAuth backend.
"""

from __future__ import annotations

from fastapi import FastAPI

from backend.api.routes import router as api_router
from backend.core.config import get_settings
from backend.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="FetchIt OAuth Backend",
        version="0.1.0",
        description="Proxies Google OAuth2 code exchange and token refresh for the FetchIt app.",
    )
    app.include_router(api_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
