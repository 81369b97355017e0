"""Authentication API endpoints.

Tokens travel as HttpOnly cookies: X-ACCESS-TOKEN and X-REFRESH-TOKEN.
"""

import logging

from fastapi import APIRouter, Depends, Response

from sessionauth.api.deps import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_refresh_token,
    get_session_lifecycle,
)
from sessionauth.core import settings
from sessionauth.schemas.auth import ChangePasswordRequest, LoginRequest, MessageResponse
from sessionauth.services.auth import SessionLifecycle

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def set_token_cookies(
    response: Response, access_token: str, refresh_token: str | None = None
) -> None:
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=settings.jwt_access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    if refresh_token is not None:
        response.set_cookie(
            REFRESH_COOKIE,
            refresh_token,
            max_age=settings.jwt_refresh_token_expire_days * 24 * 60 * 60,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="strict",
        )


def clear_token_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name, httponly=True, secure=settings.cookie_secure, samesite="strict"
        )


@router.post("/login", response_model=MessageResponse)
async def login(
    request: LoginRequest,
    response: Response,
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> MessageResponse:
    """Authenticate and receive both token cookies.

    Each login opens an additional session; existing ones stay valid.
    """
    tokens = await lifecycle.login(request.username, request.password)
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    return MessageResponse(message="Logged in")


@router.get("/token", response_model=MessageResponse)
async def renew_tokens(
    response: Response,
    refresh_token: str = Depends(get_refresh_token),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> MessageResponse:
    """Exchange a refresh token for a new access token.

    When the session is within the renewal window, the refresh token is
    rotated as well and the new one replaces the cookie.
    """
    refreshed = await lifecycle.refresh(refresh_token)
    set_token_cookies(response, refreshed.access_token, refreshed.refresh_token)
    return MessageResponse(message="Token renewed")


@router.delete("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    refresh_token: str = Depends(get_refresh_token),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> MessageResponse:
    """End the current session."""
    verification = await lifecycle.verify_refresh(refresh_token)
    await lifecycle.logout(refresh_token)
    clear_token_cookies(response)
    logger.info(f"User logged out: {verification.claims.username}")
    return MessageResponse(message="Logged out")


@router.delete("/logout/other-sessions", response_model=MessageResponse)
async def logout_other_sessions(
    refresh_token: str = Depends(get_refresh_token),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> MessageResponse:
    """End every session of the user except the current one."""
    verification = await lifecycle.verify_refresh(refresh_token)
    await lifecycle.logout_others(refresh_token, verification.claims.username)
    return MessageResponse(message="Logged out from other sessions")


@router.put("/password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    response: Response,
    refresh_token: str = Depends(get_refresh_token),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> MessageResponse:
    """Change the signed-in user's password.

    All sessions of the user, including this one, are revoked; the user
    must log in again.
    """
    verification = await lifecycle.verify_refresh(refresh_token)
    await lifecycle.change_password(
        verification.claims.username,
        request.current_password,
        request.new_password,
    )
    clear_token_cookies(response)
    return MessageResponse(message="Password changed")
