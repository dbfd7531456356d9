"""
Biowiki — Health Check Route
=============================

What:  Health check endpoint for monitoring probes.
How:   The wiki's only dependency is its storage root, so health means
       "the root exists, is a directory and is writable".

Status levels:
    - healthy:   storage root writable (HTTP 200)
    - unhealthy: storage root missing or read-only (HTTP 503)
"""

import logging
import os
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from biowiki import __version__
from biowiki.schemas.wiki import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> JSONResponse:
    root = request.app.state.wiki_service.webs.root
    if not root.is_dir():
        storage = "missing"
    elif not os.access(root, os.W_OK):
        storage = "readonly"
    else:
        storage = "writable"

    overall = "healthy" if storage == "writable" else "unhealthy"
    if overall != "healthy":
        logger.warning("Health check: storage root %s is %s", root, storage)

    health = HealthResponse(
        status=overall,
        version=__version__,
        storage=storage,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content=health.model_dump(),
    )
