"""
The OAuth credential held by the app.

Only one credential is live at a time; it arrives through the
``fetchit://auth/callback`` deep link and is persisted by the token store.
"""

from __future__ import annotations

import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"


def now_millis() -> int:
    """Client wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class OAuthCredential(BaseModel):
    """Access/refresh token pair plus the metadata needed to judge expiry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    expires_in_seconds: Optional[int] = Field(default=None, alias="expiresIn")
    issued_at_epoch_millis: Optional[int] = Field(default=None, alias="issuedAt")
    token_type: str = Field("Bearer", alias="tokenType")
    scope: str = GMAIL_READONLY_SCOPE

    @field_validator("access_token")
    @classmethod
    def _require_access_token(cls, value: str) -> str:
        if not value:
            raise ValueError("access_token must not be empty")
        return value

    @field_validator("refresh_token")
    @classmethod
    def _blank_refresh_token_is_absent(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @property
    def expires_at_epoch_millis(self) -> Optional[int]:
        if self.expires_in_seconds is None or self.issued_at_epoch_millis is None:
            return None
        return self.issued_at_epoch_millis + self.expires_in_seconds * 1000

    def authorization_header(self) -> str:
        return f"{self.token_type or 'Bearer'} {self.access_token}"


def is_valid(credential: Optional[OAuthCredential], now: Optional[int] = None) -> bool:
    """Return whether ``credential`` can still be used as a bearer token.

    A credential without both ``expires_in_seconds`` and
    ``issued_at_epoch_millis`` never expires.
    """
    if credential is None or not credential.access_token:
        return False
    expires_at = credential.expires_at_epoch_millis
    if expires_at is None:
        return True
    current = now_millis() if now is None else now
    return current < expires_at


__all__ = ["GMAIL_READONLY_SCOPE", "OAuthCredential", "is_valid", "now_millis"]
