"""
Google OAuth utilities.

These helpers build the consent URL and talk to Google's token endpoint for
both the authorization-code exchange and access-token refresh. Neither call
is retried: authorization codes are single-use and a rejected refresh token
will not heal on a second attempt.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from fastapi import status
from pydantic import BaseModel

from backend.core.config import GMAIL_READONLY_SCOPE, AppSettings

logger = logging.getLogger(__name__)


class TokenExchangeError(Exception):
    """Raised when Google rejects an authorization code."""


class TokenRefreshError(Exception):
    """Raised when Google rejects a refresh token."""


class TokenGrant(BaseModel):
    """Tokens returned by a successful authorization-code exchange."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    expires_at: Optional[datetime] = None
    token_type: str = "Bearer"
    scope: str = ""


class RefreshedToken(BaseModel):
    """Access token minted from a refresh token."""

    access_token: str
    expires_in: Optional[int] = None
    expires_at: Optional[datetime] = None
    token_type: str = "Bearer"


def _describe_error(response: httpx.Response) -> str:
    """Prefer Google's ``error_description``/``error`` fields over the raw body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        description = payload.get("error_description") or payload.get("error")
        if description:
            return str(description)
    return response.text or f"HTTP {response.status_code}"


def _token_payload(response: httpx.Response) -> Optional[Dict[str, Any]]:
    """Decode a 200 token-endpoint body; ``None`` when it is not a JSON object."""
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _parse_expires_in(raw: Any) -> Optional[int]:
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric expires_in returned by Google")
        return None


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange or refresh tokens."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    SCOPES = (GMAIL_READONLY_SCOPE,)

    def __init__(
        self,
        settings: AppSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._google = settings.google
        self._redirect_uri = settings.redirect_uri
        self._timeout = settings.oauth.http_timeout_seconds
        self._transport = transport

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    def build_authorization_url(self) -> str:
        """Construct the Google OAuth consent URL."""
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.SCOPES),
            # offline + consent makes Google re-issue a refresh token every time.
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def _post_token_endpoint(self, payload: Dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            return await client.post(self.TOKEN_URL, data=payload)

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange a single-use authorization code for a token grant."""
        payload = {
            "code": code,
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "redirect_uri": self._redirect_uri,
            "grant_type": "authorization_code",
        }

        requested_at = datetime.now(timezone.utc)
        try:
            response = await self._post_token_endpoint(payload)
        except httpx.HTTPError as exc:
            raise TokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise TokenExchangeError(_describe_error(response))

        token_payload = _token_payload(response)
        if token_payload is None:
            raise TokenExchangeError("Unreadable token payload returned from Google.")
        access_token = token_payload.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise TokenExchangeError("Incomplete token payload returned from Google.")

        expires_in = _parse_expires_in(token_payload.get("expires_in"))
        return TokenGrant(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token") or None,
            expires_in=expires_in,
            expires_at=(
                requested_at + timedelta(seconds=expires_in)
                if expires_in is not None
                else None
            ),
            token_type=token_payload.get("token_type") or "Bearer",
            scope=token_payload.get("scope") or "",
        )

    async def refresh_access_token(self, refresh_token: str) -> RefreshedToken:
        """Mint a new access token from a stored refresh token."""
        payload = {
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

        requested_at = datetime.now(timezone.utc)
        try:
            response = await self._post_token_endpoint(payload)
        except httpx.HTTPError as exc:
            raise TokenRefreshError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise TokenRefreshError(_describe_error(response))

        token_payload = _token_payload(response)
        if token_payload is None:
            raise TokenRefreshError("Unreadable refresh payload returned from Google.")
        access_token = token_payload.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise TokenRefreshError("Incomplete refresh payload returned from Google.")

        expires_in = _parse_expires_in(token_payload.get("expires_in"))
        return RefreshedToken(
            access_token=access_token,
            expires_in=expires_in,
            expires_at=(
                requested_at + timedelta(seconds=expires_in)
                if expires_in is not None
                else None
            ),
            token_type=token_payload.get("token_type") or "Bearer",
        )


__all__ = [
    "GoogleOAuthClient",
    "RefreshedToken",
    "TokenExchangeError",
    "TokenGrant",
    "TokenRefreshError",
]
