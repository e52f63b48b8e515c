"""Run the OAuth backend with uvicorn: ``python -m backend``."""

from __future__ import annotations

import logging

import uvicorn

from backend.core.config import get_settings
from backend.main import app

logger = logging.getLogger("backend")


def main() -> None:
    settings = get_settings()
    logger.info("FetchIt OAuth Backend Server starting on http://0.0.0.0:%s", settings.port)
    logger.info("Authorization URL: %s", settings.authorize_url)
    logger.info(
        "Register this redirect URI with Google Cloud Console: %s",
        settings.redirect_uri,
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":  # pragma: no cover - script entry point
    main()
