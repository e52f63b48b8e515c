"""Client-side OAuth core of the FetchIt app.

Holds the linked Gmail credential, routes ``fetchit://`` deep links and
drives the browser consent flow against the OAuth backend.
"""

from __future__ import annotations

from .context import ClientContext, create_client_context
from .credential import OAuthCredential, is_valid
from .deep_links import DeepLinkRoute, DeepLinkRouter
from .token_store import TokenStore

__all__ = [
    "ClientContext",
    "DeepLinkRoute",
    "DeepLinkRouter",
    "OAuthCredential",
    "TokenStore",
    "create_client_context",
    "is_valid",
]
