import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import func, select, text

from hr_admin.config import get_settings
from hr_admin.db import SessionDep
from hr_admin.models.comp_time import CompTimeBalance

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    service: str
    version: str
    environment: str
    database: Literal["ok", "unreachable"]
    balances_tracked: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Liveness plus a database round trip.

    A failing database degrades the response instead of failing it, so load
    balancers can tell a dead process from a dead dependency.
    """
    settings = get_settings()
    database: Literal["ok", "unreachable"] = "ok"
    balances_tracked: int | None = None

    try:
        await session.execute(text("SELECT 1"))
        result = await session.execute(select(func.count()).select_from(CompTimeBalance))
        balances_tracked = result.scalar_one()
    except Exception:
        logger.exception("Health check: database connectivity failed")
        database = "unreachable"

    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        database=database,
        balances_tracked=balances_tracked,
    )
