"""
Drives the user-facing "Link Gmail" flow.

``begin()`` opens the backend's ``/auth/authorize`` page in the system
browser. Completion arrives separately through the auth callback deep link,
which reports back via ``link_succeeded``/``link_failed``. Closing the
browser without a callback is an abandonment, not an error.
"""

from __future__ import annotations

import logging
from typing import Optional

from fetchit.browser import BrowserResultType, SystemBrowser
from fetchit.credential import OAuthCredential
from fetchit.errors import BrowserLaunchError
from fetchit.notifications import Notifier
from fetchit.token_store import TokenStore

logger = logging.getLogger(__name__)

_ABANDONED = (BrowserResultType.DISMISS, BrowserResultType.CANCEL)


class AuthSessionController:
    """Loading/error state machine around the browser consent step."""

    def __init__(
        self,
        token_store: TokenStore,
        browser: SystemBrowser,
        notifier: Notifier,
        authorize_url: str,
    ) -> None:
        self._store = token_store
        self._browser = browser
        self._notifier = notifier
        self._authorize_url = authorize_url
        self._loading = False
        self._error: Optional[str] = None
        self._callback_received = False

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_linked(self) -> bool:
        return self._store.is_linked()

    async def begin(self) -> Optional[BrowserResultType]:
        """Open the consent page; returns ``None`` when a flow is already running."""
        if self._loading:
            logger.info("OAuth flow already in progress; ignoring duplicate request")
            return None

        self._loading = True
        self._error = None
        self._callback_received = False
        logger.info("Opening backend OAuth URL")

        try:
            result = await self._browser.open(self._authorize_url)
        except (BrowserLaunchError, OSError) as exc:
            message = str(exc) or "Authentication failed"
            logger.error("Browser error: %s", message)
            self._loading = False
            self._error = message
            self._notifier.error("Failed to open Google sign-in", message)
            return None

        logger.info("Browser result: %s", result.value)
        if result in _ABANDONED and not self._callback_received:
            logger.info("User dismissed browser")
            self._loading = False
        return result

    def link_succeeded(self, credential: OAuthCredential) -> None:
        self._callback_received = True
        self._loading = False
        self._error = None

    def link_failed(self, message: str) -> None:
        self._callback_received = True
        self._loading = False
        self._error = message

    def unlink(self) -> None:
        if self._loading:
            return
        self._store.unlink_token()
        self._notifier.success("Gmail account unlinked successfully!")


__all__ = ["AuthSessionController"]
