"""
Bridge between Google's OAuth redirect and the native app.

Google redirects the browser to ``/auth/callback`` with a one-time code. The
bridge exchanges it and renders a page that navigates to the app's custom
scheme with every credential field in the query string. Nothing is stored
server-side.
"""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from enum import Enum
from string import Template
from typing import Optional
from urllib.parse import quote, urlencode

from fastapi import status

from backend.clients.google_auth import GoogleOAuthClient, TokenExchangeError, TokenGrant

logger = logging.getLogger(__name__)

REDIRECT_DELAY_MS = 1000
FALLBACK_DELAY_MS = 2000


class CallbackState(str, Enum):
    """States of a single ``/auth/callback`` request."""

    AWAITING_CODE = "awaiting_code"
    EXCHANGING = "exchanging"
    REDIRECTING_SUCCESS = "redirecting_success"
    RENDERING_ERROR = "rendering_error"


class MissingAuthorizationCode(Exception):
    """Raised when Google's redirect carries no ``code`` parameter."""


@dataclass(frozen=True)
class CallbackOutcome:
    """Terminal result of the callback handshake."""

    state: CallbackState
    status_code: int
    html: str
    deep_link: Optional[str] = None


_SUCCESS_PAGE = Template(
    """<!DOCTYPE html>
<html>
<head>
  <title>Gmail Connected - FetchIt</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
      display: flex;
      justify-content: center;
      align-items: center;
      min-height: 100vh;
      margin: 0;
      background: linear-gradient(135deg, #197dfd 0%, #006FFD 100%);
    }
    .container {
      text-align: center;
      background: white;
      padding: 40px;
      border-radius: 16px;
      box-shadow: 0 10px 40px rgba(0,0,0,0.2);
      max-width: 320px;
    }
    .success { color: #22C55E; font-size: 64px; margin-bottom: 20px; }
    h1 { margin: 0 0 10px 0; font-size: 24px; color: #333; }
    p { color: #666; margin: 10px 0; }
  </style>
</head>
<body>
  <div class="container">
    <div class="success">&#10003;</div>
    <h1>Gmail Connected!</h1>
    <p>Returning to FetchIt app...</p>
    <p><a href="$href">Tap here if nothing happens</a></p>
  </div>
  <script>
    setTimeout(function () {
      window.location.href = $js_url;
      setTimeout(function () {
        document.querySelector('.container').innerHTML =
          '<div class="success">&#10003;</div>' +
          '<h1>Success!</h1>' +
          '<p>You can close this window and return to the app.</p>';
      }, $fallback_ms);
    }, $redirect_ms);
  </script>
</body>
</html>
"""
)

_ERROR_PAGE = Template(
    """<!DOCTYPE html>
<html>
<body style="font-family: sans-serif; padding: 40px; text-align: center;">
  <h1 style="color: #EF4444;">Error</h1>
  <p>$headline</p>
  <p style="color: #666; font-size: 14px;">$detail</p>
</body>
</html>
"""
)


def render_error_page(headline: str, detail: str = "") -> str:
    """Render the static failure page; both strings are HTML-escaped."""
    return _ERROR_PAGE.substitute(
        headline=html.escape(headline), detail=html.escape(detail)
    )


def render_success_page(deep_link: str) -> str:
    return _SUCCESS_PAGE.substitute(
        href=html.escape(deep_link, quote=True),
        js_url=json.dumps(deep_link),
        redirect_ms=REDIRECT_DELAY_MS,
        fallback_ms=FALLBACK_DELAY_MS,
    )


def _require_code(code: Optional[str], error: Optional[str]) -> str:
    if code:
        return code
    if error:
        raise MissingAuthorizationCode(f"Google redirected without a code: {error}")
    raise MissingAuthorizationCode("OAuth callback hit without an authorization code")


class CallbackBridge:
    """Turn an authorization code into a custom-scheme redirect page."""

    def __init__(self, oauth_client: GoogleOAuthClient, app_scheme: str = "fetchit") -> None:
        self._oauth = oauth_client
        self._callback_url = f"{app_scheme}://auth/callback"

    @property
    def callback_url(self) -> str:
        return self._callback_url

    def build_deep_link(self, grant: TokenGrant) -> str:
        """Serialize every credential field; absent values become empty strings."""
        params = {
            "accessToken": grant.access_token,
            "refreshToken": grant.refresh_token or "",
            "expiresIn": "" if grant.expires_in is None else str(grant.expires_in),
            "tokenType": grant.token_type or "Bearer",
            "scope": grant.scope or "",
        }
        return f"{self._callback_url}?{urlencode(params, quote_via=quote)}"

    async def handle(
        self, code: Optional[str], error: Optional[str] = None
    ) -> CallbackOutcome:
        """Drive one callback request from ``AwaitingCode`` to a terminal state."""
        logger.debug("OAuth callback state: %s", CallbackState.AWAITING_CODE.value)
        try:
            code = _require_code(code, error)
        except MissingAuthorizationCode as exc:
            logger.warning("%s", exc)
            detail = f"Google returned: {error}" if error else ""
            return CallbackOutcome(
                state=CallbackState.RENDERING_ERROR,
                status_code=status.HTTP_400_BAD_REQUEST,
                html=render_error_page("No authorization code provided", detail),
            )

        logger.debug("OAuth callback state: %s", CallbackState.EXCHANGING.value)
        try:
            grant = await self._oauth.exchange_authorization_code(code)
        except TokenExchangeError as exc:
            logger.error("Error exchanging code for tokens: %s", exc)
            return CallbackOutcome(
                state=CallbackState.RENDERING_ERROR,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                html=render_error_page(
                    "Failed to connect Gmail. Please try again.", str(exc)
                ),
            )

        deep_link = self.build_deep_link(grant)
        logger.info(
            "Authorization code exchanged; redirecting to %s (refresh token %s)",
            self._callback_url,
            "issued" if grant.refresh_token else "absent",
        )
        return CallbackOutcome(
            state=CallbackState.REDIRECTING_SUCCESS,
            status_code=status.HTTP_200_OK,
            html=render_success_page(deep_link),
            deep_link=deep_link,
        )


__all__ = [
    "CallbackBridge",
    "CallbackOutcome",
    "CallbackState",
    "MissingAuthorizationCode",
    "render_error_page",
    "render_success_page",
]
