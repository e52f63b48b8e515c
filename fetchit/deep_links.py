"""
Deep link routing for the FetchIt app.

Incoming ``fetchit://`` URLs are classified into a closed set of routes and
handed to the single handler registered for that route. Links nobody claims
are logged and dropped; they never raise into the URL event source.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

DeepLinkHandler = Callable[[str], bool]
UrlListener = Callable[[str], None]


class DeepLinkRoute(str, Enum):
    """Every deep link lands in exactly one of these routes."""

    AUTH_CALLBACK = "auth_callback"
    PAYMENT_CALLBACK = "payment_callback"
    SHARE = "share"
    UNHANDLED = "unhandled"


def route_prefixes(scheme: str = "fetchit") -> Dict[DeepLinkRoute, str]:
    """Literal URL prefixes in match priority order."""
    return {
        DeepLinkRoute.AUTH_CALLBACK: f"{scheme}://auth/callback",
        DeepLinkRoute.PAYMENT_CALLBACK: f"{scheme}://payment/callback",
        DeepLinkRoute.SHARE: f"{scheme}://share/",
    }


def classify(url: str, scheme: str = "fetchit") -> DeepLinkRoute:
    """Map ``url`` to its route; anything unrecognised is ``UNHANDLED``."""
    for route, prefix in route_prefixes(scheme).items():
        if url.startswith(prefix):
            return route
    return DeepLinkRoute.UNHANDLED


@dataclass(frozen=True)
class DispatchResult:
    url: str
    route: DeepLinkRoute
    claimed: bool


class DeepLinkSource(Protocol):
    """Platform bridge delivering URLs that opened or re-entered the app."""

    def get_initial_url(self) -> Optional[str]: ...

    def subscribe(self, listener: UrlListener) -> Callable[[], None]: ...


class DeepLinkRouter:
    """Serially dispatch deep links to route handlers."""

    def __init__(
        self,
        handlers: Optional[Mapping[DeepLinkRoute, DeepLinkHandler]] = None,
        scheme: str = "fetchit",
    ) -> None:
        self._scheme = scheme
        self._handlers: Dict[DeepLinkRoute, DeepLinkHandler] = dict(handlers or {})
        if DeepLinkRoute.UNHANDLED in self._handlers:
            raise ValueError("UNHANDLED links cannot have a handler")
        self._dispatch_lock = threading.Lock()
        self._initial_url_checked = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    def register(self, route: DeepLinkRoute, handler: DeepLinkHandler) -> None:
        if route is DeepLinkRoute.UNHANDLED:
            raise ValueError("UNHANDLED links cannot have a handler")
        self._handlers[route] = handler

    def route(self, url: str) -> DispatchResult:
        """Dispatch one URL; concurrent callers are processed one at a time."""
        with self._dispatch_lock:
            return self._dispatch(url)

    def _dispatch(self, url: str) -> DispatchResult:
        logger.info("Deep link received: %s", _redact(url))
        route = classify(url, self._scheme)
        handler = self._handlers.get(route)
        if handler is None:
            logger.warning("Unhandled deep link: %s", _redact(url))
            return DispatchResult(url=url, route=route, claimed=False)

        try:
            claimed = bool(handler(url))
        except Exception:  # pylint: disable=broad-except
            logger.exception("Deep link handler for %s failed", route.value)
            claimed = True

        if not claimed:
            logger.warning("Deep link not claimed by %s handler: %s", route.value, _redact(url))
        return DispatchResult(url=url, route=route, claimed=claimed)

    def attach(self, source: DeepLinkSource) -> None:
        """Process the cold-start URL (once per router) and listen for live URLs."""
        if not self._initial_url_checked:
            self._initial_url_checked = True
            initial_url = source.get_initial_url()
            if initial_url:
                self.route(initial_url)

        if self._unsubscribe is None:
            self._unsubscribe = source.subscribe(self._on_url)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_url(self, url: str) -> None:
        self.route(url)


def _redact(url: str) -> str:
    """Drop the query string so tokens never reach the logs."""
    base, sep, _ = url.partition("?")
    return f"{base}?..." if sep else base


def log_only_handler(route: DeepLinkRoute) -> DeepLinkHandler:
    """Handler for routes the app recognises but does not act on yet."""

    def _handle(url: str) -> bool:
        logger.info("%s deep link: %s", route.value, _redact(url))
        return True

    return _handle


__all__ = [
    "DeepLinkHandler",
    "DeepLinkRoute",
    "DeepLinkRouter",
    "DeepLinkSource",
    "DispatchResult",
    "classify",
    "log_only_handler",
    "route_prefixes",
]
