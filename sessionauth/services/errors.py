"""Boundary errors raised by the service layer and mapped to HTTP responses.

Messages are generic: callers learn that a request failed, never which
token check or password rule rejected it.
"""


class ServiceError(Exception):
    """Base class for service-layer failures carrying an HTTP status."""

    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ServiceError):
    """Input failed validation or a credential policy (400)."""

    status_code = 400
    default_message = "Bad Request"


class UnauthorizedError(ServiceError):
    """Authentication failed (401)."""

    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(ServiceError):
    """Authenticated, but not allowed to perform the operation (403)."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ServiceError):
    """Target of an administrative operation does not exist (404)."""

    status_code = 404
    default_message = "Not Found"


class ConflictError(ServiceError):
    """Unique key already taken (409)."""

    status_code = 409
    default_message = "Conflict"


__all__ = [
    "ServiceError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
]
