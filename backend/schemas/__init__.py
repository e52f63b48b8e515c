"""Public schema exports."""

from .auth import (
    ErrorResponse,
    HealthResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "RefreshTokenRequest",
    "RefreshTokenResponse",
]
