"""Refresh-token sessions: the server-side record that makes refresh tokens revocable."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from sessionauth.core.database import Base


class Session(Base):
    """One active login, keyed by the exact refresh token string issued for it.

    The token column is a bearer credential: never log or return it.
    Rows are inserted and deleted, never updated; rotation replaces a row.
    Deleting a user does not cascade here, the service removes sessions first.
    """

    __tablename__ = "session"

    token: Mapped[str] = mapped_column(String(1024), primary_key=True)
    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    username: Mapped[str] = mapped_column(
        String(15), ForeignKey("user.username"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<Session {self.username} expires={self.expires.isoformat()}>"
