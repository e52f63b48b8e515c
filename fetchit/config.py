"""
Client-side configuration.

Mirrors the backend settings layer so the app core reads its backend URL and
storage options from the environment (or ``.env``) once per process.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Settings consumed by the app's auth core."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    backend_url: str = Field(..., validation_alias="FETCHIT_BACKEND_URL")
    app_scheme: str = Field("fetchit", validation_alias="FETCHIT_APP_SCHEME")
    token_db_path: str = Field(
        "data/fetchit_tokens.db", validation_alias="FETCHIT_TOKEN_DB_PATH"
    )
    token_secret: Optional[str] = Field(
        None,
        validation_alias="FETCHIT_TOKEN_SECRET",
        description="Secret used to derive the key encrypting the stored credential.",
    )
    http_timeout_seconds: float = Field(
        10.0, validation_alias="FETCHIT_HTTP_TIMEOUT_SECONDS"
    )

    @field_validator("backend_url")
    @classmethod
    def _normalize_backend_url(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def authorize_url(self) -> str:
        return f"{self.backend_url}/auth/authorize"

    @property
    def refresh_url(self) -> str:
        return f"{self.backend_url}/auth/refresh"


@lru_cache()
def get_client_settings() -> ClientSettings:
    """Return a cached settings object."""
    return ClientSettings()  # type: ignore[call-arg]


__all__ = ["ClientSettings", "get_client_settings"]
