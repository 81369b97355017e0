"""Liveness and readiness probes.

Accessible without authentication.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.core import get_db, settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alive", tags=["alive"])


class AliveResponse(BaseModel):
    status: str
    version: str


class ReadyResponse(AliveResponse):
    database: str


@router.get("", response_model=AliveResponse)
async def alive() -> AliveResponse:
    """The process is up and serving requests."""
    return AliveResponse(status="alive", version=settings.app_version)


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is ready"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Database unavailable"},
    },
)
async def ready(response: Response, db: AsyncSession = Depends(get_db)) -> ReadyResponse:
    """Ready when the database answers. Returns 503 otherwise."""
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Readiness check failed: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadyResponse(status="not_ready", version=settings.app_version, database="disconnected")
    return ReadyResponse(status="ready", version=settings.app_version, database="connected")
