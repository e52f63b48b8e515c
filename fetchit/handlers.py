"""
Handler for the ``fetchit://auth/callback`` deep link.

The backend serializes every credential field into the query string, using
empty strings for absent values. The handler rebuilds the credential,
stamps it with the client clock and links it.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Dict, List, Optional, Protocol
from urllib.parse import parse_qs, urlsplit

from pydantic import ValidationError

from fetchit.credential import GMAIL_READONLY_SCOPE, OAuthCredential, now_millis
from fetchit.deep_links import DeepLinkRoute, route_prefixes
from fetchit.errors import MissingAccessTokenInCallback
from fetchit.notifications import Notifier
from fetchit.token_store import TokenStore

logger = logging.getLogger(__name__)


class AuthCallbackListener(Protocol):
    def link_succeeded(self, credential: OAuthCredential) -> None: ...

    def link_failed(self, message: str) -> None: ...


def _query_params(url: str) -> Dict[str, str]:
    parsed = parse_qs(urlsplit(url).query, keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items() if values}


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric expiresIn in auth callback")
        return None


def parse_auth_callback(url: str, issued_at: int) -> OAuthCredential:
    """Build a credential from callback query parameters.

    Raises ``MissingAccessTokenInCallback`` when ``accessToken`` is empty or
    missing.
    """
    params = _query_params(url)
    access_token = params.get("accessToken")
    if not access_token:
        raise MissingAccessTokenInCallback("No access token received")

    return OAuthCredential(
        access_token=access_token,
        refresh_token=params.get("refreshToken") or None,
        expires_in_seconds=_optional_int(params.get("expiresIn")),
        issued_at_epoch_millis=issued_at,
        token_type=params.get("tokenType") or "Bearer",
        scope=params.get("scope") or GMAIL_READONLY_SCOPE,
    )


class AuthCallbackHandler:
    """Claim auth callback links and link the credential they carry."""

    def __init__(
        self,
        token_store: TokenStore,
        notifier: Notifier,
        scheme: str = "fetchit",
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._store = token_store
        self._notifier = notifier
        self._prefix = route_prefixes(scheme)[DeepLinkRoute.AUTH_CALLBACK]
        self._clock = clock
        self._listeners: List[AuthCallbackListener] = []

    def add_listener(self, listener: AuthCallbackListener) -> None:
        self._listeners.append(listener)

    def __call__(self, url: str) -> bool:
        if not url.startswith(self._prefix):
            return False

        try:
            credential = parse_auth_callback(url, issued_at=self._clock())
        except MissingAccessTokenInCallback as exc:
            logger.error("No access token in Gmail callback")
            self._notifier.error(f"Failed to link Gmail: {exc}")
            self._fail(str(exc))
            return True
        except ValidationError as exc:
            logger.error("Malformed Gmail callback: %s", exc)
            self._notifier.error("Failed to link Gmail account")
            self._fail("Malformed callback")
            return True

        try:
            self._store.link_token(credential)
        except (OSError, sqlite3.Error) as exc:
            logger.error("Could not store Gmail token: %s", exc)
            self._notifier.error("Failed to link Gmail account")
            self._fail("Could not save Gmail credentials")
            return True
        logger.info("Gmail token received via deep link")
        self._notifier.success("Gmail account linked successfully!")
        for listener in list(self._listeners):
            listener.link_succeeded(credential)
        return True

    def _fail(self, message: str) -> None:
        for listener in list(self._listeners):
            listener.link_failed(message)


__all__ = [
    "AuthCallbackHandler",
    "AuthCallbackListener",
    "MissingAccessTokenInCallback",
    "parse_auth_callback",
]
