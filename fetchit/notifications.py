"""User-visible notifications (toasts) raised by the auth flow."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def success(self, message: str, description: Optional[str] = None) -> None: ...

    def error(self, message: str, description: Optional[str] = None) -> None: ...

    def info(self, message: str, description: Optional[str] = None) -> None: ...


class LoggingNotifier:
    """Fallback notifier for headless use; routes toasts to the log."""

    def success(self, message: str, description: Optional[str] = None) -> None:
        logger.info("%s%s", message, f" ({description})" if description else "")

    def error(self, message: str, description: Optional[str] = None) -> None:
        logger.error("%s%s", message, f" ({description})" if description else "")

    def info(self, message: str, description: Optional[str] = None) -> None:
        logger.info("%s%s", message, f" ({description})" if description else "")


__all__ = ["LoggingNotifier", "Notifier"]
