"""
WordShelf Backend: Health Check Route
======================================

What:  Health check endpoint for container and load balancer probes.
How:   Asks every record store for a lightweight round trip (SELECT 1,
       MongoDB ping, or a one-row REST read).

Status levels:
    healthy:    the record store answers
    unhealthy:  the record store is unreachable (pages will show Failed)
"""

import logging
import time

from fastapi import APIRouter, Depends

from wordshelf import __version__
from wordshelf.schemas.api import HealthResponse
from wordshelf.services.catalog import Catalog, get_catalog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(catalog: Catalog = Depends(get_catalog)) -> HealthResponse:
    store_ok = await catalog.health_check()
    if not store_ok:
        logger.warning("Health check: %s store unreachable", catalog.store_backend)
    return HealthResponse(
        status="healthy" if store_ok else "unhealthy",
        version=__version__,
        store="connected" if store_ok else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
