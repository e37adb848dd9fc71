"""Server time and health endpoints."""
import logging

from fastapi import APIRouter, Depends

from rewardhub.clock import now_iso
from rewardhub.schemas import HealthResponse, TimeResponse
from rewardhub.store import StoreAdapter, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["system"])


@router.get(
    "/time",
    response_model=TimeResponse,
    summary="Server time",
    description="Current server timestamp. Clients compute countdowns against this instead of their own clock.",
)
async def server_time():
    return TimeResponse(timestamp=now_iso())


@router.get("/health", response_model=HealthResponse, summary="Health check")
def health_check(store: StoreAdapter = Depends(get_store)):
    """
    Health check endpoint for monitoring system status.

    Returns "healthy" when the store answers a ping and "degraded" otherwise;
    the response code is 200 either way.
    """
    store_ok = store.ping()
    if not store_ok:
        logger.error(f"Store health check failed ({store.product})")
    return HealthResponse(
        status="healthy" if store_ok else "degraded",
        store="ok" if store_ok else "error",
        backend=store.product,
        timestamp=now_iso(),
    )
