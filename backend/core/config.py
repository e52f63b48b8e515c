"""
Application configuration models and helpers.

Settings are read from the environment (and an optional ``.env`` file) once
per process and treated as immutable afterwards.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"


class GoogleSettings(BaseSettings):
    """Credentials of the OAuth client registered with Google."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    client_id: str = Field(..., validation_alias="GOOGLE_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="GOOGLE_CLIENT_SECRET")


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_scheme: str = Field("fetchit", validation_alias="APP_SCHEME")
    http_timeout_seconds: float = Field(
        10.0,
        validation_alias="OAUTH_HTTP_TIMEOUT_SECONDS",
        description="Timeout applied to every call against the Google token endpoint.",
    )

    @field_validator("app_scheme")
    @classmethod
    def _strip_scheme_suffix(cls, value: str) -> str:
        """Accept ``fetchit``, ``fetchit:`` or ``fetchit://``."""
        cleaned = value.strip().rstrip("/").rstrip(":")
        if not cleaned:
            raise ValueError("APP_SCHEME must not be empty.")
        return cleaned


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    port: int = Field(3000, validation_alias="PORT")
    backend_url: str = Field(
        ...,
        validation_alias=AliasChoices("BACKEND_URL", "NGROK_URL"),
        description=(
            "Externally reachable base URL; must match the redirect URI "
            "registered with Google."
        ),
    )
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)

    @field_validator("backend_url")
    @classmethod
    def _normalize_backend_url(cls, value: str) -> str:
        cleaned = value.strip().rstrip("/")
        if not cleaned.startswith(("http://", "https://")):
            raise ValueError("BACKEND_URL must be an absolute http(s) URL.")
        return cleaned

    @property
    def redirect_uri(self) -> str:
        """Callback URL Google redirects the browser to after consent."""
        return f"{self.backend_url}/auth/callback"

    @property
    def authorize_url(self) -> str:
        return f"{self.backend_url}/auth/authorize"


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GMAIL_READONLY_SCOPE",
    "GoogleSettings",
    "OAuthSettings",
    "get_settings",
]
