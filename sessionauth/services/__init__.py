# SessionAuth Services
from sessionauth.services.auth import SessionLifecycle
from sessionauth.services.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
)
from sessionauth.services.passwords import PasswordHasher
from sessionauth.services.session_store import SessionRecord, SessionStore
from sessionauth.services.token_codec import TokenClaims, TokenCodec, TokenType

__all__ = [
    "BadRequestError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "PasswordHasher",
    "ServiceError",
    "SessionLifecycle",
    "SessionRecord",
    "SessionStore",
    "TokenClaims",
    "TokenCodec",
    "TokenType",
    "UnauthorizedError",
]
