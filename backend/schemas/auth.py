"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Body returned by the root health check."""

    status: str
    timestamp: str


class RefreshTokenRequest(BaseModel):
    """Body posted by the app to mint a new access token."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(
        default=None,
        alias="refreshToken",
        description="Refresh token issued during the original consent.",
    )


class RefreshTokenResponse(BaseModel):
    """Fresh access token returned to the app."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")
    expires_in: Optional[int] = Field(
        default=None,
        alias="expiresIn",
        description="Lifetime of the new access token in seconds.",
    )
    token_type: str = Field("Bearer", alias="tokenType")


class ErrorResponse(BaseModel):
    """JSON error body used by programmatic endpoints."""

    error: str


__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "RefreshTokenRequest",
    "RefreshTokenResponse",
]
