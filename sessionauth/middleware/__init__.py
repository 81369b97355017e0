"""Middleware module for SessionAuth."""

from sessionauth.middleware.method_guard import AllowedMethodsMiddleware
from sessionauth.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "AllowedMethodsMiddleware",
    "SecurityHeadersMiddleware",
]
