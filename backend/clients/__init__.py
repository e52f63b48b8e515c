"""Expose constructed client wrappers."""

from .google_auth import (
    GoogleOAuthClient,
    RefreshedToken,
    TokenExchangeError,
    TokenGrant,
    TokenRefreshError,
)

__all__ = [
    "GoogleOAuthClient",
    "RefreshedToken",
    "TokenExchangeError",
    "TokenGrant",
    "TokenRefreshError",
]
