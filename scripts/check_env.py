"""Validate the OAuth backend's ``.env`` before deploying it.

Loads ``AppSettings`` from the given file, reports missing or malformed
entries (Google client credentials, ``BACKEND_URL``/``NGROK_URL``) and, on
success, prints the URLs the Google Cloud console and the app need::

    python -m scripts.check_env --env-file /opt/fetchit/.env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError

from backend.core.config import AppSettings, GoogleSettings, OAuthSettings

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def _validate_settings(env_file: Path) -> AppSettings:
    return AppSettings(  # type: ignore[call-arg]
        _env_file=env_file,
        google=GoogleSettings(_env_file=env_file),  # type: ignore[call-arg]
        oauth=OAuthSettings(_env_file=env_file),  # type: ignore[call-arg]
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate OAuth backend settings and print the Google redirect URI."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        settings = _validate_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    print(f"Redirect URI to register with Google: {settings.redirect_uri}")
    print(f"App sign-in URL: {settings.authorize_url}")
    print(f"Deep-link scheme: {settings.oauth.app_scheme}://")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
