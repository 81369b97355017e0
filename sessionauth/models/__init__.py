# SessionAuth Models
from sessionauth.models.session import Session
from sessionauth.models.user import User

__all__ = [
    "Session",
    "User",
]
