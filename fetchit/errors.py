"""Exceptions raised by the client-side auth core."""

from __future__ import annotations


class MissingAccessTokenInCallback(Exception):
    """Raised when the auth callback link carries no access token."""


class TokenRefreshError(Exception):
    """Raised when a new access token could not be minted."""


class NotLinkedError(Exception):
    """Raised when an authenticated call is attempted without a linked account."""


class AuthenticationRejectedError(Exception):
    """Raised after a downstream API answered 401; the credential has been unlinked."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Authentication rejected by {url}; Gmail account unlinked.")
        self.url = url


class BrowserLaunchError(Exception):
    """Raised when the system browser could not be opened."""


__all__ = [
    "AuthenticationRejectedError",
    "BrowserLaunchError",
    "MissingAccessTokenInCallback",
    "NotLinkedError",
    "TokenRefreshError",
]
