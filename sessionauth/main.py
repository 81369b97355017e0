"""SessionAuth - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sessionauth.api import admin_router, alive_router, auth_router
from sessionauth.api.error_handling import register_exception_handlers
from sessionauth.core import async_session_maker, engine, settings, setup_logging, utc_now
from sessionauth.core.database import check_db_connection
from sessionauth.core.logging import get_logger
from sessionauth.middleware import AllowedMethodsMiddleware, SecurityHeadersMiddleware

# Import all models to ensure they're registered with Base for Alembic
from sessionauth.models import Session, User  # noqa: F401
from sessionauth.services.session_store import SessionStore

logger = get_logger("main")

EXPIRED_SESSION_CLEANUP_INTERVAL_SECONDS = 300


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


async def _expired_session_cleanup_loop() -> None:
    """Periodically remove sessions past their expiry."""
    while True:
        await asyncio.sleep(EXPIRED_SESSION_CLEANUP_INTERVAL_SECONDS)
        try:
            async with async_session_maker() as db:
                removed = await SessionStore(db).delete_expired(utc_now())
                await db.commit()
                if removed > 0:
                    logger.info(f"Cleaned up {removed} expired sessions")
        except Exception:
            logger.exception("Error cleaning up expired sessions")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    if not await check_db_connection():
        logger.error("Database is not reachable at startup; readiness will report not_ready")

    cleanup_task = asyncio.create_task(
        _expired_session_cleanup_loop(), name="expired-session-cleanup"
    )
    cleanup_task.add_done_callback(task_done_callback)

    yield

    logger.info("Shutting down...")
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Username/password authentication with rotating refresh-token sessions",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    register_exception_handlers(app)

    app.add_middleware(AllowedMethodsMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on error responses too.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

    app.include_router(alive_router)
    app.include_router(auth_router)
    app.include_router(admin_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
        }

    return app


# Application instance
app = create_app()
