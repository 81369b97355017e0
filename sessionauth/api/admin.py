"""Administrative user management endpoints (admin access token required).

Request bodies are read only after the caller's access token has been
checked for the admin flag, so unauthenticated and non-admin callers get
401/403 regardless of what they send.
"""

from typing import TypeVar

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ValidationError

from sessionauth.api.deps import get_admin_claims, get_session_lifecycle
from sessionauth.schemas.auth import (
    CreateUserRequest,
    MessageResponse,
    NewPasswordRequest,
    UserResponse,
)
from sessionauth.services.auth import SessionLifecycle
from sessionauth.services.errors import BadRequestError
from sessionauth.services.token_codec import TokenClaims

router = APIRouter(prefix="/admin", tags=["admin"])

RequestModel = TypeVar("RequestModel", bound=BaseModel)


async def _read_body(request: Request, model: type[RequestModel]) -> RequestModel:
    try:
        payload = await request.json()
    except ValueError:
        raise BadRequestError() from None
    try:
        return model.model_validate(payload)
    except ValidationError:
        raise BadRequestError() from None


@router.post("/user", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    actor: TokenClaims = Depends(get_admin_claims),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> UserResponse:
    """Create a user. Returns 409 if the username is taken."""
    body = await _read_body(request, CreateUserRequest)
    user = await lifecycle.create_user(
        actor,
        body.username,
        body.password,
        is_admin=body.admin,
        member_since=body.member_since,
    )
    return UserResponse.model_validate(user)


@router.delete("/user/{username}", response_model=MessageResponse)
async def delete_user(
    username: str,
    actor: TokenClaims = Depends(get_admin_claims),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> MessageResponse:
    """Delete a user together with all of their sessions."""
    await lifecycle.delete_user(actor, username)
    return MessageResponse(message="User deleted")


@router.put("/user/{username}/password", response_model=MessageResponse)
async def reset_password(
    username: str,
    request: Request,
    actor: TokenClaims = Depends(get_admin_claims),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
) -> MessageResponse:
    """Set a user's password and sign them out everywhere."""
    body = await _read_body(request, NewPasswordRequest)
    await lifecycle.reset_password(actor, username, body.new_password)
    return MessageResponse(message="Password reset")
