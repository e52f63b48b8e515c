"""System browser integration used to show Google's consent page."""

from __future__ import annotations

import asyncio
import webbrowser
from enum import Enum
from typing import Protocol

from fetchit.errors import BrowserLaunchError


class BrowserResultType(str, Enum):
    """How the browser-open call completed."""

    OPENED = "opened"
    DISMISS = "dismiss"
    CANCEL = "cancel"
    LOCKED = "locked"


class SystemBrowser(Protocol):
    async def open(self, url: str) -> BrowserResultType: ...


class DesktopBrowser:
    """Open URLs with the platform's default browser via :mod:`webbrowser`.

    The desktop browser cannot report dismissal, so a successful launch
    always resolves to ``OPENED`` and completion arrives through the deep link.
    """

    async def open(self, url: str) -> BrowserResultType:
        launched = await asyncio.to_thread(webbrowser.open, url)
        if not launched:
            raise BrowserLaunchError("No web browser available to open the consent page")
        return BrowserResultType.OPENED


__all__ = ["BrowserResultType", "DesktopBrowser", "SystemBrowser"]
