"""Map service and framework errors to the JSON error envelope ``{"error": ...}``.

Internal details (token decode errors, SQL errors, validation specifics)
are logged but never returned.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sessionauth.services.errors import BadRequestError, ServiceError

logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    500: "Server Error",
}


def error_response(
    status_code: int, message: str | None = None, headers: dict[str, str] | None = None
) -> JSONResponse:
    body = {"error": message or _STATUS_MESSAGES.get(status_code, "Error")}
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Install exception handlers on the application."""

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        log_fn = logger.error if exc.status_code >= 500 else logger.info
        log_fn(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info(f"{request.method} {request.url.path} -> 400 invalid request")
        return error_response(BadRequestError.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return error_response(500)
