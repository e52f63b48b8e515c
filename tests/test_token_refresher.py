from __future__ import annotations

import json

import httpx
import pytest

from fetchit.api_client import AuthenticatedHttpClient, GmailClient
from fetchit.credential import OAuthCredential
from fetchit.errors import AuthenticationRejectedError, NotLinkedError, TokenRefreshError
from fetchit.refresh import TokenRefresher
from fetchit.storage import InMemoryTokenStorage
from fetchit.token_store import TokenStore

REFRESH_URL = "https://backend.example.com/auth/refresh"
NOW = 1_700_010_000_000


class FakeBackend:
    """Serve ``/auth/refresh`` and Gmail endpoints from canned responses."""

    def __init__(self) -> None:
        self.refresh_bodies: list[dict] = []
        self.refresh_response = httpx.Response(
            200, json={"accessToken": "AT2", "expiresIn": 3599, "tokenType": "Bearer"}
        )
        self.gmail_status = 200
        self.gmail_auth_headers: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/auth/refresh":
            self.refresh_bodies.append(json.loads(request.content))
            return self.refresh_response
        self.gmail_auth_headers.append(request.headers["authorization"])
        if self.gmail_status != 200:
            return httpx.Response(self.gmail_status, json={"error": {"code": self.gmail_status}})
        return httpx.Response(200, json={"messages": [{"id": "m1"}]})


def _expired(**overrides) -> OAuthCredential:
    values = {
        "access_token": "AT1",
        "refresh_token": "RT1",
        "expires_in_seconds": 3600,
        "issued_at_epoch_millis": NOW - 3_600_001,
        "scope": "scope-a",
    }
    values.update(overrides)
    return OAuthCredential(**values)


def _wire(backend: FakeBackend, credential: OAuthCredential | None):
    store = TokenStore(InMemoryTokenStorage())
    if credential is not None:
        store.link_token(credential)
    transport = httpx.MockTransport(backend)
    refresher = TokenRefresher(store, REFRESH_URL, transport=transport, clock=lambda: NOW)
    http = AuthenticatedHttpClient(store, refresher, transport=transport)
    return store, refresher, http


@pytest.mark.asyncio
async def test_refresh_relinks_full_credential() -> None:
    backend = FakeBackend()
    store, refresher, _ = _wire(backend, _expired())

    refreshed = await refresher.refresh()

    assert backend.refresh_bodies == [{"refreshToken": "RT1"}]
    assert refreshed == OAuthCredential(
        access_token="AT2",
        refresh_token="RT1",
        expires_in_seconds=3599,
        issued_at_epoch_millis=NOW,
        token_type="Bearer",
        scope="scope-a",
    )
    assert store.get_token() == refreshed


@pytest.mark.asyncio
async def test_refresh_failure_leaves_store_unchanged() -> None:
    backend = FakeBackend()
    backend.refresh_response = httpx.Response(500, json={"error": "Failed to refresh token"})
    store, refresher, _ = _wire(backend, _expired())

    with pytest.raises(TokenRefreshError, match="Failed to refresh token"):
        await refresher.refresh()

    assert store.get_token() == _expired()


@pytest.mark.asyncio
async def test_refresh_without_refresh_token_never_calls_backend() -> None:
    backend = FakeBackend()
    _, refresher, _ = _wire(backend, _expired(refresh_token=None))

    with pytest.raises(TokenRefreshError):
        await refresher.refresh()

    assert backend.refresh_bodies == []


@pytest.mark.asyncio
async def test_ensure_valid_token_requires_linked_account() -> None:
    _, refresher, _ = _wire(FakeBackend(), None)

    with pytest.raises(NotLinkedError):
        await refresher.ensure_valid_token()


@pytest.mark.asyncio
async def test_valid_token_is_used_without_refresh() -> None:
    backend = FakeBackend()
    _, refresher, _ = _wire(backend, _expired(issued_at_epoch_millis=NOW))

    credential = await refresher.ensure_valid_token()

    assert credential.access_token == "AT1"
    assert backend.refresh_bodies == []


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_before_api_call() -> None:
    backend = FakeBackend()
    store, _, http = _wire(backend, _expired())

    data = await GmailClient(http).list_messages("category:purchases")

    assert data == {"messages": [{"id": "m1"}]}
    assert backend.gmail_auth_headers == ["Bearer AT2"]
    token = store.get_token()
    assert token is not None and token.access_token == "AT2"


@pytest.mark.asyncio
async def test_unauthorized_response_unlinks_account() -> None:
    backend = FakeBackend()
    backend.gmail_status = 401
    store, _, http = _wire(backend, _expired(issued_at_epoch_millis=NOW))

    with pytest.raises(AuthenticationRejectedError):
        await GmailClient(http).get_message("m1")

    assert store.is_linked() is False
    assert backend.refresh_bodies == []


@pytest.mark.asyncio
async def test_other_http_errors_keep_account_linked() -> None:
    backend = FakeBackend()
    backend.gmail_status = 503
    store, _, http = _wire(backend, _expired(issued_at_epoch_millis=NOW))

    with pytest.raises(httpx.HTTPStatusError):
        await GmailClient(http).get_message("m1")

    assert store.is_linked() is True


@pytest.mark.asyncio
async def test_unlink_during_refresh_is_not_undone() -> None:
    backend = FakeBackend()
    store = TokenStore(InMemoryTokenStorage())
    store.link_token(_expired())

    def unlink_mid_request(request: httpx.Request) -> httpx.Response:
        store.unlink_token()
        return backend(request)

    refresher = TokenRefresher(
        store, REFRESH_URL, transport=httpx.MockTransport(unlink_mid_request), clock=lambda: NOW
    )

    with pytest.raises(NotLinkedError):
        await refresher.refresh()

    assert store.is_linked() is False
    assert store.get_token() is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json=["AT2"]),
        httpx.Response(200, json={"accessToken": "AT2", "expiresIn": "abc"}),
        httpx.Response(200, json={"accessToken": 42}),
    ],
)
async def test_unreadable_refresh_response_raises_refresh_error(response: httpx.Response) -> None:
    backend = FakeBackend()
    backend.refresh_response = response
    store, refresher, _ = _wire(backend, _expired())

    with pytest.raises(TokenRefreshError):
        await refresher.refresh()

    assert store.get_token() == _expired()
