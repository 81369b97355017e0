"""Persistence boundary for refresh-token sessions.

The store never commits: callers group its statements into one transaction
so multi-step changes (rotation, revocation cascades) apply atomically.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.core.clock import ensure_utc
from sessionauth.core.logging import token_fingerprint
from sessionauth.models.session import Session
from sessionauth.services.errors import ConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRecord:
    token: str
    expires: datetime
    username: str

    def __repr__(self) -> str:
        # Keep the bearer token out of reprs and tracebacks
        return (
            f"SessionRecord(token=<{token_fingerprint(self.token)}>, "
            f"expires={self.expires.isoformat()}, username={self.username!r})"
        )


class SessionStore:
    """Create, read and delete session rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, record: SessionRecord) -> None:
        """Insert a session. Raises ConflictError if the token already exists."""
        try:
            await self.db.execute(
                insert(Session).values(
                    token=record.token,
                    expires=ensure_utc(record.expires),
                    username=record.username,
                )
            )
        except IntegrityError as e:
            logger.warning(f"Session token collision for user {record.username}")
            raise ConflictError() from e

    async def find_by_token(self, token: str) -> SessionRecord | None:
        result = await self.db.execute(
            select(Session.token, Session.expires, Session.username).where(Session.token == token)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return SessionRecord(token=row.token, expires=ensure_utc(row.expires), username=row.username)

    async def _delete(self, *criteria: Any) -> int:
        result: CursorResult[Any] = await self.db.execute(  # type: ignore[assignment]
            delete(Session).where(*criteria)
        )
        return result.rowcount

    async def delete_by_token(self, token: str) -> int:
        """Delete one session; returns the number of rows removed (0 or 1)."""
        return await self._delete(Session.token == token)

    async def delete_all_for_user_except(self, username: str, keep_token: str) -> int:
        return await self._delete(Session.username == username, Session.token != keep_token)

    async def delete_all_for_user(self, username: str) -> int:
        return await self._delete(Session.username == username)

    async def delete_expired_for_user(self, username: str, now: datetime) -> int:
        return await self._delete(Session.username == username, Session.expires < ensure_utc(now))

    async def delete_expired(self, now: datetime) -> int:
        """Remove expired sessions for every user. Returns count removed."""
        return await self._delete(Session.expires < ensure_utc(now))
