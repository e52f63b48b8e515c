"""
FastAPI routes for the FetchIt OAuth backend.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import ValidationError

from backend.clients.google_auth import TokenRefreshError
from backend.dependencies import get_callback_bridge, get_google_oauth_client
from backend.schemas import (
    ErrorResponse,
    HealthResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=HealthResponse, status_code=HTTPStatus.OK)
async def healthcheck() -> HealthResponse:
    """Simple health endpoint for monitoring."""
    return HealthResponse(
        status="FetchIt OAuth Backend Server Running",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/auth/authorize", status_code=HTTPStatus.FOUND)
async def start_google_oauth_flow(
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
) -> RedirectResponse:
    """Send the browser to Google's consent screen."""
    authorization_url = oauth_client.build_authorization_url()
    logger.info("Redirecting browser to Google consent screen")
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.FOUND)


@router.get("/auth/callback", response_class=HTMLResponse)
async def handle_google_oauth_callback(
    bridge: Annotated[Any, Depends(get_callback_bridge)],
    code: str | None = Query(
        default=None, description="Authorization code returned by Google."
    ),
    error: str | None = Query(
        default=None, description="Error reported by Google, e.g. access_denied."
    ),
) -> HTMLResponse:
    """Exchange the code and hand the tokens back to the app via its URL scheme."""
    outcome = await bridge.handle(code, error)
    return HTMLResponse(content=outcome.html, status_code=outcome.status_code)


async def _read_refresh_token(request: Request) -> Optional[str]:
    """Pull ``refreshToken`` from the body; unreadable bodies count as missing."""
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    try:
        return RefreshTokenRequest.model_validate(body).refresh_token
    except ValidationError:
        return None


@router.post(
    "/auth/refresh",
    response_model=RefreshTokenResponse,
    responses={
        HTTPStatus.BAD_REQUEST: {"model": ErrorResponse},
        HTTPStatus.INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def refresh_access_token(
    request: Request,
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
) -> Any:
    """Mint a new access token from a refresh token; never retried."""
    refresh_token = await _read_refresh_token(request)
    if not refresh_token:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST,
            content=ErrorResponse(error="No refresh token provided").model_dump(),
        )

    try:
        refreshed = await oauth_client.refresh_access_token(refresh_token)
    except TokenRefreshError as exc:
        logger.error("Error refreshing token: %s", exc)
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Failed to refresh token").model_dump(),
        )

    return JSONResponse(
        content=RefreshTokenResponse(
            access_token=refreshed.access_token,
            expires_in=refreshed.expires_in,
            token_type=refreshed.token_type,
        ).model_dump(by_alias=True)
    )


__all__ = ["router"]
