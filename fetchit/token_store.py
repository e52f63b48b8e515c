"""
Holder of the app's single linked OAuth credential.

The store keeps an in-memory copy in sync with an injected persistence
backend. Every read and write goes through one lock, so callers never see
the two copies disagree.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from pydantic import ValidationError

from fetchit.credential import OAuthCredential
from fetchit.storage import TokenStorage

logger = logging.getLogger(__name__)

TokenListener = Callable[[Optional[OAuthCredential]], None]


class TokenStore:
    """Link, unlink and read the current credential."""

    def __init__(self, storage: TokenStorage) -> None:
        self._storage = storage
        self._lock = threading.RLock()
        self._token: Optional[OAuthCredential] = None
        self._listeners: List[TokenListener] = []

    def hydrate(self) -> None:
        """Load the persisted credential into memory; corrupt data leaves the store unlinked."""
        with self._lock:
            try:
                record = self._storage.load()
                token = OAuthCredential.model_validate(record) if record else None
            except (ValidationError, ValueError) as exc:
                logger.error("Error hydrating OAuth token: %s", exc)
                token = None
            self._token = token
        logger.debug("Token store hydrated (linked=%s)", token is not None)

    def link_token(self, credential: OAuthCredential) -> None:
        """Persist ``credential`` and make it the live one, replacing any prior credential."""
        with self._lock:
            self._storage.save(credential.model_dump(by_alias=True))
            self._token = credential
        self._notify(credential)

    def replace_token(self, expected: OAuthCredential, credential: OAuthCredential) -> bool:
        """Link ``credential`` only while ``expected`` is still the live credential.

        Returns ``False`` and leaves the store alone when the credential was
        unlinked or replaced in the meantime.
        """
        with self._lock:
            if self._token is None or self._token != expected:
                return False
            self._storage.save(credential.model_dump(by_alias=True))
            self._token = credential
        self._notify(credential)
        return True

    def unlink_token(self) -> None:
        with self._lock:
            self._storage.clear()
            self._token = None
        self._notify(None)

    def get_token(self) -> Optional[OAuthCredential]:
        with self._lock:
            return self._token

    def is_linked(self) -> bool:
        with self._lock:
            return self._token is not None

    def subscribe(self, listener: TokenListener) -> Callable[[], None]:
        """Call ``listener`` after every link/unlink; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, credential: Optional[OAuthCredential]) -> None:
        for listener in list(self._listeners):
            try:
                listener(credential)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Token store listener failed")


__all__ = ["TokenListener", "TokenStore"]
