"""Health & Readiness Probes.

Invariants:
    - GET /api/v1/health/ answers 200 whenever the process can serve requests
    - GET /api/v1/health/ready answers 503 until the database round-trips
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from parley import __version__
from parley.config import Settings, get_settings
from parley.infrastructure import database

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "parley-api", "version": __version__}


@router.get("/ready")
async def readiness(settings: Settings = Depends(get_settings)):
    """Database reachability plus the background work this instance runs."""
    manager = database.db_manager
    database_ok = manager is not None and await manager.health_check()
    checks = {
        "database": "healthy" if database_ok else "unavailable",
        "typing_sweeper": (
            "enabled" if settings.typing_sweep_interval_seconds > 0 else "disabled"
        ),
    }
    if not database_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready", "reason": "database_unavailable",
                "checks": checks,
            },
        )
    return {"status": "ready", "checks": checks}
