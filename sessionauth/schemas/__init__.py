# SessionAuth Pydantic Schemas
from sessionauth.schemas.auth import (
    ChangePasswordRequest,
    CreateUserRequest,
    LoginRequest,
    MessageResponse,
    NewPasswordRequest,
    UserResponse,
)

__all__ = [
    "ChangePasswordRequest",
    "CreateUserRequest",
    "LoginRequest",
    "MessageResponse",
    "NewPasswordRequest",
    "UserResponse",
]
