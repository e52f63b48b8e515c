"""
Explicit wiring of the client-side auth core.

The app builds one ``ClientContext`` at start-up and passes it to whatever
needs the token, instead of reaching for process-wide singletons.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from fetchit.api_client import AuthenticatedHttpClient, GmailClient
from fetchit.auth_session import AuthSessionController
from fetchit.browser import DesktopBrowser, SystemBrowser
from fetchit.config import ClientSettings
from fetchit.deep_links import DeepLinkRoute, DeepLinkRouter, log_only_handler
from fetchit.handlers import AuthCallbackHandler
from fetchit.notifications import LoggingNotifier, Notifier
from fetchit.refresh import TokenRefresher
from fetchit.storage import SQLiteTokenStorage, TokenStorage
from fetchit.token_cipher import TokenCipherService
from fetchit.token_store import TokenStore


@dataclass
class ClientContext:
    settings: ClientSettings
    token_store: TokenStore
    router: DeepLinkRouter
    auth_callback: AuthCallbackHandler
    session: AuthSessionController
    refresher: TokenRefresher
    http: AuthenticatedHttpClient
    gmail: GmailClient


def default_storage(settings: ClientSettings) -> TokenStorage:
    """Encrypted SQLite storage at ``FETCHIT_TOKEN_DB_PATH``."""
    if not settings.token_secret:
        raise ValueError("FETCHIT_TOKEN_SECRET must be set to persist tokens.")
    return SQLiteTokenStorage(
        settings.token_db_path, TokenCipherService(secret=settings.token_secret)
    )


def create_client_context(
    settings: ClientSettings,
    storage: Optional[TokenStorage] = None,
    browser: Optional[SystemBrowser] = None,
    notifier: Optional[Notifier] = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientContext:
    """Build and hydrate the auth core; the router still needs ``attach(source)``."""
    notifier = notifier or LoggingNotifier()
    token_store = TokenStore(storage if storage is not None else default_storage(settings))
    token_store.hydrate()

    session = AuthSessionController(
        token_store=token_store,
        browser=browser or DesktopBrowser(),
        notifier=notifier,
        authorize_url=settings.authorize_url,
    )
    auth_callback = AuthCallbackHandler(token_store, notifier, scheme=settings.app_scheme)
    auth_callback.add_listener(session)

    router = DeepLinkRouter(
        {
            DeepLinkRoute.AUTH_CALLBACK: auth_callback,
            DeepLinkRoute.PAYMENT_CALLBACK: log_only_handler(DeepLinkRoute.PAYMENT_CALLBACK),
            DeepLinkRoute.SHARE: log_only_handler(DeepLinkRoute.SHARE),
        },
        scheme=settings.app_scheme,
    )

    refresher = TokenRefresher(
        token_store,
        refresh_url=settings.refresh_url,
        timeout_seconds=settings.http_timeout_seconds,
        transport=transport,
    )
    http = AuthenticatedHttpClient(token_store, refresher, transport=transport)
    return ClientContext(
        settings=settings,
        token_store=token_store,
        router=router,
        auth_callback=auth_callback,
        session=session,
        refresher=refresher,
        http=http,
        gmail=GmailClient(http),
    )


__all__ = ["ClientContext", "create_client_context", "default_storage"]
