"""Pydantic schemas for authentication API."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Bodies reject unknown fields; shape checks here are only a first pass,
# the credential rules are enforced by the service layer.
_STRICT = ConfigDict(extra="forbid", populate_by_name=True)


class LoginRequest(BaseModel):
    """Request for login."""

    model_config = _STRICT

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    """Request for password change by the signed-in user."""

    model_config = _STRICT

    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=1)


class NewPasswordRequest(BaseModel):
    """Request for an administrative password reset."""

    model_config = _STRICT

    new_password: str = Field(..., alias="newPassword", min_length=1)


class CreateUserRequest(BaseModel):
    """Request for administrative user creation."""

    model_config = _STRICT

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    admin: bool = False
    member_since: datetime | None = Field(
        None,
        alias="memberSince",
        description="Membership start; defaults to now. Truncated to whole seconds.",
    )


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class UserResponse(BaseModel):
    """Response with user information (never the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    admin: bool = Field(validation_alias=AliasChoices("is_admin", "admin"))
    member_since: datetime = Field(
        validation_alias=AliasChoices("member_since", "memberSince"),
        serialization_alias="memberSince",
    )
