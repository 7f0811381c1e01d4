"""
PhotoVerse Backend — Health Check Route
=========================================

What:  Health check endpoint for monitoring and container liveness checks.
How:   Reports which providers have credentials. Does NOT call them:
       a check every 10–30 seconds must not spend generation quota.

Status levels:
    - healthy:   both providers configured
    - degraded:  only one provider configured (no fallback, or fallback only)
    - unhealthy: no provider configured (every generation will fail)
"""

import logging
import time

from fastapi import APIRouter

from photoverse import __version__
from photoverse.schemas.poem import HealthResponse
from photoverse.services.poem_service import poem_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    providers = {
        provider.name: "configured" if provider.is_configured else "missing_key"
        for provider in (poem_service.primary, poem_service.secondary)
    }

    configured = sum(1 for status in providers.values() if status == "configured")
    if configured == len(providers):
        overall = "healthy"
    elif configured:
        overall = "degraded"
    else:
        overall = "unhealthy"
        logger.warning("Health check: no poem provider has an API key")

    return HealthResponse(
        status=overall,
        version=__version__,
        providers=providers,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
