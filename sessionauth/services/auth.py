"""Session lifecycle: login, token verification, rotation and revocation.

Access tokens are verified statelessly. Refresh tokens are verified by
signature *and* by their session row, which is the authority for revocation.
Every multi-statement change runs in a single transaction bounded by the
store timeout; on any failure or cancellation the unit is rolled back.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.core.clock import Clock, ensure_utc, member_since_iso, utc_now
from sessionauth.core.config import settings
from sessionauth.core.logging import token_fingerprint
from sessionauth.models.user import User
from sessionauth.services.credential_policy import validate_password, validate_username
from sessionauth.services.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from sessionauth.services.passwords import PasswordHasher
from sessionauth.services.session_store import SessionRecord, SessionStore
from sessionauth.services.token_codec import TokenClaims, TokenCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedTokens:
    """A freshly minted credential pair and the expiry of its session row."""

    access_token: str
    refresh_token: str
    refresh_expires: datetime


@dataclass(frozen=True)
class RefreshVerification:
    claims: TokenClaims
    need_renew: bool


@dataclass(frozen=True)
class RefreshedTokens:
    """Result of a refresh: always a new access token, a new refresh token only on rotation."""

    access_token: str
    refresh_token: str | None = None
    refresh_expires: datetime | None = None


class SessionLifecycle:
    """Orchestrates the token codec, the session store and the user table."""

    def __init__(
        self,
        db: AsyncSession,
        codec: TokenCodec,
        hasher: PasswordHasher,
        *,
        clock: Clock = utc_now,
        renewal_threshold: timedelta | None = None,
        store_timeout: float | None = None,
    ):
        self.db = db
        self.codec = codec
        self.hasher = hasher
        self.clock = clock
        self.renewal_threshold = renewal_threshold or timedelta(
            minutes=settings.session_renewal_threshold_minutes
        )
        self.store_timeout = store_timeout or settings.store_timeout_seconds
        self.store = SessionStore(db)

    @asynccontextmanager
    async def _atomic(self) -> AsyncIterator[None]:
        """Commit the enclosed statements together, or roll all of them back."""
        try:
            async with asyncio.timeout(self.store_timeout):
                yield
                await self.db.commit()
        except BaseException:
            await self.db.rollback()
            raise

    async def get_user(self, username: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.username == username).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _check_password(self, user: User, password: str) -> bool:
        return self.hasher.verify(
            user.username, member_since_iso(user.member_since), password, user.password_hash
        )

    def _issue(self, user: User, now: datetime) -> IssuedTokens:
        return IssuedTokens(
            access_token=self.codec.sign_access(user.username, user.is_admin, now=now),
            refresh_token=self.codec.sign_refresh(user.username, user.is_admin, now=now),
            refresh_expires=now + self.codec.refresh_ttl,
        )

    @staticmethod
    def require_admin(actor: TokenClaims) -> None:
        if not actor.is_admin:
            logger.warning(f"Non-admin {actor.username} attempted an admin operation")
            raise ForbiddenError()

    # --- Login and verification ---

    async def login(self, username: str, password: str) -> IssuedTokens:
        """Authenticate and open a new session. Existing sessions are left alone."""
        user = await self.get_user(username)
        if user is None:
            # Hash anyway so unknown usernames cost the same as wrong passwords
            self.hasher.hash(username, member_since_iso(self.clock()), password)
            raise UnauthorizedError()
        if not self._check_password(user, password):
            raise UnauthorizedError()

        now = self.clock()
        tokens = self._issue(user, now)
        async with self._atomic():
            await self.store.delete_expired_for_user(user.username, now)
            await self.store.create(
                SessionRecord(tokens.refresh_token, tokens.refresh_expires, user.username)
            )

        logger.info(
            f"User logged in: {user.username} (session {token_fingerprint(tokens.refresh_token)})"
        )
        return tokens

    def verify_access(self, access_token: str) -> TokenClaims:
        """Stateless check of an access token; no database access."""
        verification = self.codec.verify_access(access_token)
        if not verification.ok or verification.claims is None:
            logger.debug(f"Access token rejected: {verification.failure}")
            raise UnauthorizedError()
        return verification.claims

    async def verify_refresh(self, refresh_token: str) -> RefreshVerification:
        """Check the refresh token's signature, then its session row."""
        verification = self.codec.verify_refresh(refresh_token)
        if not verification.ok or verification.claims is None:
            logger.debug(f"Refresh token rejected: {verification.failure}")
            raise UnauthorizedError()

        record = await self.store.find_by_token(refresh_token)
        now = self.clock()
        if record is None or record.expires < now:
            logger.debug(f"Refresh token {token_fingerprint(refresh_token)} has no live session")
            raise UnauthorizedError()

        return RefreshVerification(
            claims=verification.claims,
            need_renew=record.expires < now + self.renewal_threshold,
        )

    # --- Rotation ---

    async def rotate(self, refresh_token: str, claims: TokenClaims) -> IssuedTokens:
        """Replace a session row and its refresh token with fresh ones.

        The old row is removed with a delete keyed on the exact token and the
        new row is inserted only if that delete removed one row, all inside one
        transaction: of any number of concurrent rotations presenting the same
        token, at most one succeeds.
        """
        now = self.clock()
        async with self._atomic():
            user = await self.get_user(claims.username)
            if user is None:
                raise UnauthorizedError()
            if await self.store.delete_by_token(refresh_token) != 1:
                logger.info(
                    f"Rotation lost for session {token_fingerprint(refresh_token)}: "
                    "already rotated or revoked"
                )
                raise UnauthorizedError()
            tokens = self._issue(user, now)
            await self.store.create(
                SessionRecord(tokens.refresh_token, tokens.refresh_expires, user.username)
            )

        logger.info(
            f"Session rotated for {user.username}: "
            f"{token_fingerprint(refresh_token)} -> {token_fingerprint(tokens.refresh_token)}"
        )
        return tokens

    async def refresh(self, refresh_token: str) -> RefreshedTokens:
        """Mint a new access token, rotating the session when it is near expiry.

        The admin flag is re-read from the user row rather than copied from
        the refresh token.
        """
        verification = await self.verify_refresh(refresh_token)
        if verification.need_renew:
            tokens = await self.rotate(refresh_token, verification.claims)
            return RefreshedTokens(
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                refresh_expires=tokens.refresh_expires,
            )

        user = await self.get_user(verification.claims.username)
        if user is None:
            raise UnauthorizedError()
        return RefreshedTokens(
            access_token=self.codec.sign_access(user.username, user.is_admin, now=self.clock())
        )

    # --- Revocation ---

    async def logout(self, refresh_token: str) -> None:
        """Revoke one session. Revoking an unknown token is not an error."""
        async with self._atomic():
            await self.store.delete_by_token(refresh_token)

    async def logout_others(self, refresh_token: str, username: str) -> int:
        """Revoke every session of the user except the presented one."""
        async with self._atomic():
            removed = await self.store.delete_all_for_user_except(username, refresh_token)
        logger.info(f"Logged out {removed} other session(s) for {username}")
        return removed

    async def change_password(
        self, username: str, current_password: str, new_password: str
    ) -> None:
        """Replace the password and revoke every session of the user, including the caller's."""
        user = await self.get_user(username)
        if user is None or not self._check_password(user, current_password):
            raise UnauthorizedError()
        if not validate_password(user.username, new_password):
            raise BadRequestError()

        await self._replace_password(user, new_password)
        logger.info(f"Password changed for user: {user.username}")

    async def _replace_password(self, user: User, new_password: str) -> None:
        new_hash = self.hasher.hash(user.username, member_since_iso(user.member_since), new_password)
        async with self._atomic():
            user.password_hash = new_hash
            await self.db.flush()
            revoked = await self.store.delete_all_for_user(user.username)
        logger.info(f"Revoked {revoked} session(s) for {user.username}")

    # --- Administration ---

    async def register_user(
        self,
        username: str,
        password: str,
        *,
        is_admin: bool = False,
        member_since: datetime | None = None,
    ) -> User:
        """Create a user after checking the credential rules. No caller check."""
        if not validate_username(username) or not validate_password(username, password):
            raise BadRequestError()

        joined = ensure_utc(member_since or self.clock()).replace(microsecond=0)
        user = User(
            username=username,
            password_hash=self.hasher.hash(username, member_since_iso(joined), password),
            member_since=joined,
            is_admin=is_admin,
        )
        async with self._atomic():
            if await self.get_user(username) is not None:
                raise ConflictError()
            self.db.add(user)
            try:
                await self.db.flush()
            except IntegrityError as e:
                raise ConflictError() from e

        logger.info(f"Created user: {username} (admin={is_admin})")
        return user

    async def create_user(
        self,
        actor: TokenClaims,
        username: str,
        password: str,
        *,
        is_admin: bool = False,
        member_since: datetime | None = None,
    ) -> User:
        """Administrative user creation; the actor's access token must carry admin."""
        self.require_admin(actor)
        return await self.register_user(
            username, password, is_admin=is_admin, member_since=member_since
        )

    async def delete_user(self, actor: TokenClaims, username: str) -> None:
        """Delete a user and all of their sessions in one transaction."""
        self.require_admin(actor)
        if not validate_username(username):
            raise BadRequestError()

        async with self._atomic():
            user = await self.get_user(username)
            if user is None:
                raise NotFoundError()
            revoked = await self.store.delete_all_for_user(username)
            await self.db.delete(user)
            await self.db.flush()

        logger.info(f"Deleted user {username} and {revoked} session(s) (by {actor.username})")

    async def reset_password(self, actor: TokenClaims, username: str, new_password: str) -> None:
        """Administrative password reset; revokes every session of the target user."""
        self.require_admin(actor)
        if not validate_username(username):
            raise BadRequestError()

        user = await self.get_user(username)
        if user is None:
            raise NotFoundError()
        if not validate_password(user.username, new_password):
            raise BadRequestError()

        await self._replace_password(user, new_password)
        logger.info(f"Password reset for {username} by {actor.username}")
