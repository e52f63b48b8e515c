"""
FastAPI dependency utilities for injecting configuration.
"""

from backend.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning the process-wide application settings."""
    return get_settings()


__all__ = ["get_app_settings"]
