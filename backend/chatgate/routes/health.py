"""
ChatGate Backend — Health Check Route
=======================================

What:  GET /health for load balancers and uptime monitors.
How:   SELECT 1 against the profile store; Gemini is only checked for a
       configured key (a real call would cost quota).

Status levels:
    healthy    database reachable, Gemini configured
    degraded   database reachable, Gemini key missing
    unhealthy  database unreachable (every endpoint except signup/login fails)
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from chatgate import __version__
from chatgate.config import settings
from chatgate.schemas.common import HealthResponse
from chatgate.services.gemini_service import gemini_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        from chatgate.database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    gemini_status = "configured" if gemini_service.is_configured() else "not_configured"
    if gemini_status != "configured" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        gemini=gemini_status,
        entitlement_policy=settings.entitlement_policy,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
