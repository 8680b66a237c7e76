"""System health routes — liveness with database reachability, and the monitor snapshot."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError

from core.app import __version__
from core.config import settings
from core.db import ping
from core.rbac import require_role
from core.schemas import HealthCheck

log = logging.getLogger("shop.api")
router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthCheck)
def health_check():
    """Check API health and database connectivity."""
    try:
        connected = ping()
    except SQLAlchemyError as e:
        log.warning(f"Health check: database unreachable: {e}")
        connected = False

    return HealthCheck(
        status="ok" if connected else "degraded",
        version=__version__,
        database=settings.database_url.split("///")[-1],
        database_connected=connected,
    )


@router.get("/health/monitor")
def health_monitor(request: Request, current_user: dict = Depends(require_role("viewer"))):
    """Last result of the background health monitor."""
    monitor = getattr(request.app.state, "health_monitor", None)
    if monitor is None:
        return {"status": "unknown", "checked_at": None, "checks": {}}
    return monitor.snapshot()
