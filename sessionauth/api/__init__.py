# SessionAuth API routers
from sessionauth.api.admin import router as admin_router
from sessionauth.api.alive import router as alive_router
from sessionauth.api.auth import router as auth_router

__all__ = [
    "admin_router",
    "alive_router",
    "auth_router",
]
