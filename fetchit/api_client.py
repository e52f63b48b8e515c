"""
Bearer-authenticated HTTP access for API collaborators such as Gmail.

A ``401`` means the stored credential is no longer accepted. The client
signs the account out and raises instead of retrying.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from fetchit.errors import AuthenticationRejectedError
from fetchit.refresh import TokenRefresher
from fetchit.token_store import TokenStore

logger = logging.getLogger(__name__)

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"


class AuthenticatedHttpClient:
    """Send requests carrying the linked account's access token."""

    def __init__(
        self,
        token_store: TokenStore,
        refresher: TokenRefresher,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store = token_store
        self._refresher = refresher
        self._timeout = timeout_seconds
        self._transport = transport

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        credential = await self._refresher.ensure_valid_token()
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = credential.authorization_header()

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.request(method, url, headers=headers, **kwargs)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.warning("%s %s returned 401; unlinking stored credential", method, url)
            self._store.unlink_token()
            raise AuthenticationRejectedError(url)

        response.raise_for_status()
        return response

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self.request("GET", url, params=params)
        return response.json()


class GmailClient:
    """Minimal Gmail API consumer of the linked token."""

    def __init__(self, http_client: AuthenticatedHttpClient, base_url: str = GMAIL_API_BASE) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def list_messages(
        self, query: str, max_results: int = 100, page_token: Optional[str] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"q": query, "maxResults": max_results}
        if page_token:
            params["pageToken"] = page_token
        return await self._http.get_json(f"{self._base_url}/users/me/messages", params=params)

    async def get_message(self, message_id: str) -> Dict[str, Any]:
        return await self._http.get_json(
            f"{self._base_url}/users/me/messages/{message_id}",
            params={"format": "full"},
        )


__all__ = ["AuthenticatedHttpClient", "GMAIL_API_BASE", "GmailClient"]
