"""User model for authentication."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from sessionauth.core.database import Base


class User(Base):
    """An account that can log in.

    The password hash is derived from username, member_since and the plaintext,
    so member_since must never change after creation.
    """

    __tablename__ = "user"

    username: Mapped[str] = mapped_column(String(15), primary_key=True)
    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)
    member_since: Mapped[datetime] = mapped_column(
        "membersince", DateTime(timezone=True), nullable=False
    )
    is_admin: Mapped[bool] = mapped_column("admin", Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.username}>"
