"""
Solo Parent Backend: Health Check Route
========================================

`GET /health` probes the database with SELECT 1. A reachable database gives
200 "healthy"; otherwise 503 "unhealthy" so load balancers stop routing.
Mail and image storage are not probed; they degrade per request.
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from soloparent import __version__
from soloparent.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    connected = await request.app.state.db.ping()
    report = HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if not connected:
        logger.warning("Health check: database unreachable")
        return JSONResponse(status_code=503, content=report.model_dump())
    return report
