"""
Access-token refresh through the backend's ``/auth/refresh`` endpoint.

A refreshed credential replaces the stored one in full: the refresh token and
scope carry over, the access token, lifetime and issue time are new. Any
failure leaves the store untouched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from fetchit.credential import OAuthCredential, is_valid, now_millis
from fetchit.errors import NotLinkedError, TokenRefreshError
from fetchit.token_store import TokenStore

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"HTTP {response.status_code}"


def _expires_in(raw: Any) -> Optional[int]:
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise TokenRefreshError(f"Refresh response carried a bad expiresIn: {raw!r}") from exc


def _text(raw: Any) -> Optional[str]:
    return raw if isinstance(raw, str) and raw else None


class TokenRefresher:
    """Keep the stored access token usable."""

    def __init__(
        self,
        token_store: TokenStore,
        refresh_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._store = token_store
        self._refresh_url = refresh_url
        self._timeout = timeout_seconds
        self._transport = transport
        self._clock = clock
        self._lock = asyncio.Lock()

    async def refresh(self, credential: Optional[OAuthCredential] = None) -> OAuthCredential:
        """Mint a new access token for the stored credential and link it.

        Raises ``NotLinkedError`` when the stored credential was unlinked or
        replaced while the request was in flight.
        """
        current = credential or self._store.get_token()
        if current is None:
            raise NotLinkedError("No Gmail account linked.")
        if not current.refresh_token:
            raise TokenRefreshError(
                "No refresh token available; the consent flow must be run again."
            )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._refresh_url, json={"refreshToken": current.refresh_token}
                )
        except httpx.HTTPError as exc:
            raise TokenRefreshError(f"Refresh request failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise TokenRefreshError(_error_message(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenRefreshError("Refresh response was not valid JSON.") from exc
        if not isinstance(payload, dict):
            raise TokenRefreshError("Refresh response was not a JSON object.")
        access_token = payload.get("accessToken")
        if not access_token or not isinstance(access_token, str):
            raise TokenRefreshError("Refresh response did not include an access token.")

        refreshed = OAuthCredential(
            access_token=access_token,
            refresh_token=current.refresh_token,
            expires_in_seconds=_expires_in(payload.get("expiresIn")),
            issued_at_epoch_millis=self._clock(),
            token_type=_text(payload.get("tokenType")) or current.token_type,
            scope=current.scope,
        )
        if not self._store.replace_token(current, refreshed):
            logger.info("Credential changed during refresh; discarding new access token")
            raise NotLinkedError("Gmail account was unlinked or relinked during refresh.")
        logger.info("Access token refreshed")
        return refreshed

    async def ensure_valid_token(self) -> OAuthCredential:
        """Return a usable credential, refreshing an expired one first."""
        async with self._lock:
            credential = self._store.get_token()
            if credential is None:
                raise NotLinkedError("No Gmail account linked.")
            if is_valid(credential, self._clock()):
                return credential
            logger.info("Stored access token expired; refreshing")
            return await self.refresh(credential)


__all__ = ["TokenRefresher"]
