from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

import pytest

from fetchit.credential import OAuthCredential
from fetchit.storage import InMemoryTokenStorage, SQLiteTokenStorage
from fetchit.token_cipher import TokenCipherService
from fetchit.token_store import TokenStore


def _credential(access_token: str = "AT1", **overrides) -> OAuthCredential:
    values = {
        "access_token": access_token,
        "refresh_token": "RT1",
        "expires_in_seconds": 3600,
        "issued_at_epoch_millis": 1_700_000_000_000,
    }
    values.update(overrides)
    return OAuthCredential(**values)


class FailingStorage(InMemoryTokenStorage):
    def save(self, record: dict) -> None:
        raise OSError("disk full")


def test_link_then_unlink_leaves_nothing_behind() -> None:
    storage = InMemoryTokenStorage()
    store = TokenStore(storage)

    store.link_token(_credential())
    assert store.is_linked()
    assert store.get_token() == _credential()
    assert storage.load() is not None

    store.unlink_token()

    assert store.get_token() is None
    assert store.is_linked() is False
    assert storage.load() is None


def test_new_link_replaces_previous_credential_in_full() -> None:
    store = TokenStore(InMemoryTokenStorage())
    store.link_token(_credential("AT1", scope="a b"))

    store.link_token(_credential("AT2", refresh_token=None, expires_in_seconds=None))

    token = store.get_token()
    assert token is not None
    assert token.access_token == "AT2"
    assert token.refresh_token is None
    assert token.expires_in_seconds is None


def test_failed_persist_keeps_memory_unchanged() -> None:
    store = TokenStore(FailingStorage())

    with pytest.raises(OSError):
        store.link_token(_credential())

    assert store.get_token() is None
    assert store.is_linked() is False


def test_hydrate_loads_persisted_credential() -> None:
    storage = InMemoryTokenStorage(_credential().model_dump(by_alias=True))
    store = TokenStore(storage)
    assert store.is_linked() is False

    store.hydrate()

    assert store.get_token() == _credential()


def test_hydrate_with_corrupt_record_starts_unlinked() -> None:
    store = TokenStore(InMemoryTokenStorage({"accessToken": ""}))

    store.hydrate()

    assert store.is_linked() is False


def test_listeners_observe_link_and_unlink() -> None:
    store = TokenStore(InMemoryTokenStorage())
    seen: list[OAuthCredential | None] = []
    unsubscribe = store.subscribe(seen.append)

    store.link_token(_credential())
    store.unlink_token()
    unsubscribe()
    store.link_token(_credential("AT2"))

    assert seen == [_credential(), None]


def test_unlink_is_never_half_applied_for_concurrent_readers() -> None:
    storage = InMemoryTokenStorage()
    store = TokenStore(storage)
    store.link_token(_credential())
    mismatches: list[str] = []
    stop = threading.Event()

    def reader() -> None:
        while not stop.is_set():
            with store._lock:  # read both copies under the store's own lock
                in_memory = store.get_token() is not None
                persisted = storage.load() is not None
            if in_memory != persisted:
                mismatches.append("split")

    thread = threading.Thread(target=reader)
    thread.start()
    for _ in range(200):
        store.unlink_token()
        store.link_token(_credential())
    stop.set()
    thread.join()

    assert mismatches == []


def test_sqlite_storage_survives_new_store_instance(tmp_path: Path) -> None:
    db_path = tmp_path / "tokens" / "fetchit.db"
    cipher = TokenCipherService(secret="device-secret")

    TokenStore(SQLiteTokenStorage(str(db_path), cipher)).link_token(_credential())

    restarted = TokenStore(SQLiteTokenStorage(str(db_path), cipher))
    restarted.hydrate()
    assert restarted.get_token() == _credential()

    restarted.unlink_token()
    again = TokenStore(SQLiteTokenStorage(str(db_path), cipher))
    again.hydrate()
    assert again.is_linked() is False


def test_sqlite_storage_encrypts_credential_at_rest(tmp_path: Path) -> None:
    db_path = tmp_path / "fetchit.db"
    storage = SQLiteTokenStorage(str(db_path), TokenCipherService(secret="device-secret"))
    storage.save(_credential("ya29.secret-access").model_dump(by_alias=True))

    with sqlite3.connect(db_path) as conn:
        (data,) = conn.execute("SELECT data FROM kv_records").fetchone()

    assert "ya29.secret-access" not in data
    assert "RT1" not in data


def test_sqlite_storage_with_wrong_secret_hydrates_unlinked(tmp_path: Path) -> None:
    db_path = tmp_path / "fetchit.db"
    SQLiteTokenStorage(str(db_path), TokenCipherService(secret="one")).save(
        _credential().model_dump(by_alias=True)
    )

    store = TokenStore(SQLiteTokenStorage(str(db_path), TokenCipherService(secret="two")))
    store.hydrate()

    assert store.is_linked() is False


def test_replace_token_swaps_only_the_expected_credential() -> None:
    store = TokenStore(InMemoryTokenStorage())
    store.link_token(_credential("AT1"))

    assert store.replace_token(_credential("AT1"), _credential("AT2")) is True
    token = store.get_token()
    assert token is not None and token.access_token == "AT2"

    assert store.replace_token(_credential("AT1"), _credential("AT3")) is False
    token = store.get_token()
    assert token is not None and token.access_token == "AT2"


def test_replace_token_never_relinks_after_unlink() -> None:
    storage = InMemoryTokenStorage()
    store = TokenStore(storage)
    store.link_token(_credential("AT1"))
    store.unlink_token()

    assert store.replace_token(_credential("AT1"), _credential("AT2")) is False
    assert store.is_linked() is False
    assert storage.load() is None


def test_sqlite_storage_closes_every_connection(tmp_path: Path, monkeypatch) -> None:
    opened: list[sqlite3.Connection] = []
    original = SQLiteTokenStorage._connect

    def tracking_connect(self) -> sqlite3.Connection:
        conn = original(self)
        opened.append(conn)
        return conn

    monkeypatch.setattr(SQLiteTokenStorage, "_connect", tracking_connect)
    storage = SQLiteTokenStorage(
        str(tmp_path / "fetchit.db"), TokenCipherService(secret="device-secret")
    )
    storage.save(_credential().model_dump(by_alias=True))
    assert storage.load() is not None
    storage.clear()

    assert len(opened) == 4
    for conn in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")
