"""
Health check routes.
"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from batchcode.dependencies.services import get_store
from batchcode.exceptions import StoreError
from batchcode.sentry_config import sentry_enabled
from batchcode.services.store import BatchCodeStore

router = APIRouter(tags=["health"])

HEALTH_HEADERS = {
    "Cache-Control": "no-store, max-age=0",
    "X-Health-Check": "true",
}


async def _database_ok(store: BatchCodeStore) -> bool:
    try:
        return await store.ping()
    except StoreError:
        return False


@router.get("/")
async def root(request: Request):
    """Service banner."""
    settings = request.app.state.settings
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@router.get("/health")
async def health(request: Request, store: BatchCodeStore = Depends(get_store)):
    """Detailed health check."""
    settings = request.app.state.settings
    database_ok = await _database_ok(store)
    body = {
        "status": "healthy" if database_ok else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.monotonic() - request.app.state.started_at, 3),
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "sentry": sentry_enabled(),
        "database": "connected" if database_ok else "unavailable",
    }
    return JSONResponse(body, status_code=200 if database_ok else 503, headers=HEALTH_HEADERS)


@router.head("/health")
async def health_head(store: BatchCodeStore = Depends(get_store)):
    """Status-only health check for load balancers."""
    status_code = 200 if await _database_ok(store) else 503
    return Response(status_code=status_code, headers=HEALTH_HEADERS)
