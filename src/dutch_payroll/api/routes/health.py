"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from pydantic import BaseModel

from dutch_payroll import __version__
from dutch_payroll.api.dependencies import Store
from dutch_payroll.errors import PayrollError

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    storage: str
    version: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
def health_check(store: Store) -> HealthResponse:
    """Check API and data store health."""
    storage_status = "healthy"
    try:
        store.payroll_runs.load()
        store.adjustments.load()
    except PayrollError:
        storage_status = "unhealthy"

    return HealthResponse(
        status="healthy" if storage_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        storage=storage_status,
        version=__version__,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check() -> dict[str, str]:
    """Readiness check for container orchestration."""
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
