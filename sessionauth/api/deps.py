"""Dependency providers wiring settings, collaborators and the request session.

Collaborators are built explicitly from settings here; tests replace them
through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Cookie, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.core import Clock, get_db, settings, utc_now
from sessionauth.services.auth import SessionLifecycle
from sessionauth.services.errors import UnauthorizedError
from sessionauth.services.passwords import PasswordHasher
from sessionauth.services.token_codec import TokenClaims, TokenCodec

ACCESS_COOKIE = "X-ACCESS-TOKEN"
REFRESH_COOKIE = "X-REFRESH-TOKEN"


def get_clock() -> Clock:
    return utc_now


@lru_cache
def _default_password_hasher() -> PasswordHasher:
    return PasswordHasher.from_settings(settings)


def get_password_hasher() -> PasswordHasher:
    return _default_password_hasher()


def get_token_codec(clock: Clock = Depends(get_clock)) -> TokenCodec:
    return TokenCodec.from_settings(settings, clock=clock)


def get_session_lifecycle(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    hasher: PasswordHasher = Depends(get_password_hasher),
    clock: Clock = Depends(get_clock),
) -> SessionLifecycle:
    """Dependency to get the session lifecycle service."""
    return SessionLifecycle(db, codec, hasher, clock=clock)


def get_refresh_token(
    refresh_token: str | None = Cookie(None, alias=REFRESH_COOKIE),
) -> str:
    """The raw refresh token cookie; presence only, not validity."""
    if not refresh_token:
        raise UnauthorizedError()
    return refresh_token


def get_access_claims(
    access_token: str | None = Cookie(None, alias=ACCESS_COOKIE),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> TokenClaims:
    """Claims of a valid access token cookie."""
    if not access_token:
        raise UnauthorizedError()
    return lifecycle.verify_access(access_token)


def get_admin_claims(claims: TokenClaims = Depends(get_access_claims)) -> TokenClaims:
    """Claims of a valid access token that carries the admin flag."""
    SessionLifecycle.require_admin(claims)
    return claims
