"""Reject HTTP methods the API never serves, before routing."""

import logging

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

# OPTIONS stays allowed so CORS preflight reaches CORSMiddleware
ALLOWED_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "DELETE", "OPTIONS"})


class AllowedMethodsMiddleware(BaseHTTPMiddleware):
    """Answer 405 for any method outside ALLOWED_METHODS, on every path."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method not in ALLOWED_METHODS:
            logger.debug(f"Rejected method {request.method} {request.url.path}")
            return JSONResponse(status_code=405, content={"error": "Method Not Allowed"})
        return await call_next(request)
