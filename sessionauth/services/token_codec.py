"""Signing and verification of access and refresh tokens.

Both kinds are HS512 JWTs carrying the username, the admin flag and the
token type. Each kind is signed with its own secret. Verification returns a
``TokenVerification`` value instead of raising, so callers decide how a
failure surfaces.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

import jwt
from jwt.exceptions import InvalidAlgorithmError, InvalidSignatureError, PyJWTError

from sessionauth.core.clock import Clock, utc_now
from sessionauth.core.config import Settings

ALGORITHM = "HS512"

_DECODE_OPTIONS = {
    "require": ["exp", "iat"],
    # Expiry is checked against the injected clock below
    "verify_exp": False,
    "verify_iat": False,
}


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenFailure(str, Enum):
    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"
    WRONG_TYPE = "wrong_type"


@dataclass(frozen=True)
class TokenClaims:
    """Caller-visible claims; timing and identifier fields are not included."""

    username: str
    is_admin: bool
    token_type: TokenType


@dataclass(frozen=True)
class TokenVerification:
    claims: TokenClaims | None = None
    failure: TokenFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def sign(claims: TokenClaims, secret: str, ttl: timedelta, *, now: datetime) -> str:
    """Sign claims into a token that expires ``ttl`` after ``now``."""
    if ttl <= timedelta(0):
        raise ValueError("Token TTL must be positive")
    payload: dict[str, Any] = {
        "username": claims.username,
        "admin": claims.is_admin,
        "type": claims.token_type.value,
        # Random identifier so tokens minted in the same second never collide
        "jti": secrets.token_hex(16),
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    # PyJWT 2.x returns str; older type stubs may declare bytes
    return str(jwt.encode(payload, secret, algorithm=ALGORITHM))


def verify(
    token: str, secret: str, expected_type: TokenType, *, now: datetime
) -> TokenVerification:
    """Check signature, expiry and type, in that order."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], options=_DECODE_OPTIONS)
    except (InvalidSignatureError, InvalidAlgorithmError):
        # InvalidSignatureError subclasses DecodeError, so it must be caught first
        return TokenVerification(failure=TokenFailure.SIGNATURE_INVALID)
    except PyJWTError:
        return TokenVerification(failure=TokenFailure.MALFORMED)

    username = payload.get("username")
    is_admin = payload.get("admin")
    token_type = payload.get("type")
    expires_at = payload.get("exp")
    if (
        not isinstance(username, str)
        or not isinstance(is_admin, bool)
        or not isinstance(token_type, str)
        or not isinstance(expires_at, int | float)
    ):
        return TokenVerification(failure=TokenFailure.MALFORMED)

    if expires_at <= now.timestamp():
        return TokenVerification(failure=TokenFailure.EXPIRED)

    if token_type != expected_type.value:
        return TokenVerification(failure=TokenFailure.WRONG_TYPE)

    return TokenVerification(
        claims=TokenClaims(username=username, is_admin=is_admin, token_type=expected_type)
    )


class TokenCodec:
    """Holds the two signing secrets and TTLs; stateless otherwise."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        *,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        clock: Clock = utc_now,
    ):
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens must use different secrets")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utc_now) -> "TokenCodec":
        return cls(
            settings.jwt_access_secret_key,
            settings.jwt_refresh_secret_key,
            access_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
            clock=clock,
        )

    def sign_access(self, username: str, is_admin: bool, *, now: datetime | None = None) -> str:
        claims = TokenClaims(username=username, is_admin=is_admin, token_type=TokenType.ACCESS)
        return sign(claims, self._access_secret, self.access_ttl, now=now or self.clock())

    def sign_refresh(self, username: str, is_admin: bool, *, now: datetime | None = None) -> str:
        claims = TokenClaims(username=username, is_admin=is_admin, token_type=TokenType.REFRESH)
        return sign(claims, self._refresh_secret, self.refresh_ttl, now=now or self.clock())

    def verify_access(self, token: str) -> TokenVerification:
        return verify(token, self._access_secret, TokenType.ACCESS, now=self.clock())

    def verify_refresh(self, token: str) -> TokenVerification:
        return verify(token, self._refresh_secret, TokenType.REFRESH, now=self.clock())
