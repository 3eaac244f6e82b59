"""
Message Store Backend - Health Check Route
==========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings MongoDB under the normal store timeout and reports the result.
Who:   Called by container health checks, load balancers and monitoring systems.

Status levels:
    - healthy:   MongoDB answered the ping (HTTP 200)
    - unhealthy: MongoDB unreachable or not connected (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from message_store import __version__
from message_store.config import settings
from message_store.database import ping
from message_store.exceptions import StoreError
from message_store.schemas.message import HealthResponse

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    """
    Probe the document store and return aggregate status.

    A failed probe is a normal answer here, not an error response: the
    failure is logged as a warning and reported with status 503.
    """
    logger: logging.Logger = request.app.state.logger
    db_status = "connected"
    overall = "healthy"

    collection = getattr(request.app.state, "collection", None)
    if collection is None:
        db_status = "disconnected"
        overall = "unhealthy"
    else:
        try:
            await ping(collection.database.client, settings.store_timeout_seconds)
        except StoreError as e:
            db_status = "disconnected"
            overall = "unhealthy"
            logger.warning("Health check: MongoDB unreachable: %s", e.context)

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content=body.model_dump(),
    )
