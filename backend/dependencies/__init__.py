"""Expose dependency helpers for FastAPI routers."""

from .clients import get_callback_bridge, get_google_oauth_client
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_callback_bridge",
    "get_google_oauth_client",
]
