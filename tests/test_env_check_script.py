"""Tests for the backend settings check script."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts import check_env

REQUIRED_ENV_KEYS = [
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "BACKEND_URL",
    "NGROK_URL",
    "APP_SCHEME",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_missing_env_file_is_a_runtime_error(tmp_path: Path) -> None:
    exit_code = check_env.main(["--env-file", str(tmp_path / ".missing-env")])

    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_ngrok_url_yields_redirect_and_sign_in_urls(
    tmp_path: Path, clean_env: None, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"
    _write_env(
        env_file,
        GOOGLE_CLIENT_ID="abc",
        GOOGLE_CLIENT_SECRET="secret",
        NGROK_URL="https://abc123.ngrok-free.dev/",
        APP_SCHEME="fetchit-dev://",
    )

    exit_code = check_env.main(["--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK
    out = capsys.readouterr().out
    assert "https://abc123.ngrok-free.dev/auth/callback" in out
    assert "https://abc123.ngrok-free.dev/auth/authorize" in out
    assert "fetchit-dev://" in out


def test_missing_client_secret_fails_validation(tmp_path: Path, clean_env: None) -> None:
    env_file = tmp_path / ".env"
    _write_env(
        env_file,
        GOOGLE_CLIENT_ID="abc",
        BACKEND_URL="https://abc123.ngrok-free.dev",
    )

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_VALIDATION_ERROR


def test_relative_backend_url_fails_validation(tmp_path: Path, clean_env: None) -> None:
    env_file = tmp_path / ".env"
    _write_env(
        env_file,
        GOOGLE_CLIENT_ID="abc",
        GOOGLE_CLIENT_SECRET="secret",
        BACKEND_URL="abc123.ngrok-free.dev",
    )

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_VALIDATION_ERROR
