"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from typing import Annotated

from fastapi import Depends

from backend.clients import GoogleOAuthClient
from backend.core.config import AppSettings
from backend.services import CallbackBridge

from .config import get_app_settings


def get_google_oauth_client(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> GoogleOAuthClient:
    """Build the Google OAuth client from the injected settings."""
    return GoogleOAuthClient(settings)


def get_callback_bridge(
    oauth_client: Annotated[GoogleOAuthClient, Depends(get_google_oauth_client)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> CallbackBridge:
    """Build the callback bridge around the shared OAuth client."""
    return CallbackBridge(
        oauth_client=oauth_client,
        app_scheme=settings.oauth.app_scheme,
    )


__all__ = [
    "get_callback_bridge",
    "get_google_oauth_client",
]
