"""
Health check endpoints.

Provides system health and readiness checks.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from projectbank.api.deps import CatalogDep, SettingsDep
from projectbank.models.common import HealthResponse

logger = logging.getLogger(__name__)

# In-memory buffers for diagnostics
_recent_errors: deque = deque(maxlen=100)
_recent_requests: deque = deque(maxlen=100)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_error(error: dict) -> None:
    """Add an error to the recent errors buffer."""
    error["timestamp"] = _now_iso()
    _recent_errors.append(error)


def log_request(request: dict) -> None:
    """Add a request to the recent requests buffer."""
    request["timestamp"] = _now_iso()
    _recent_requests.append(request)


router = APIRouter()
ping_router = APIRouter()


@ping_router.get("/ping", summary="Ping")
async def ping(settings: SettingsDep) -> dict:
    """Return the configured ping message."""
    return {"message": settings.ping_message}


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the API is healthy and return storage status.",
)
async def health_check(settings: SettingsDep, catalog: CatalogDep) -> HealthResponse:
    """
    Check API health status.

    Returns basic health information including version and environment.
    Also checks the project store.
    """
    store_healthy = catalog.store.ping()
    projects_count = 0
    if store_healthy:
        try:
            projects_count = catalog.store.count()
        except Exception as e:
            logger.error(f"Project count failed: {e}")
            store_healthy = False

    return HealthResponse(
        status="healthy" if store_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        storage_backend=catalog.store.backend,
        storage="healthy" if store_healthy else "unhealthy",
        projects_count=projects_count,
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the API is ready to accept traffic.",
)
async def readiness_check() -> dict:
    """
    Check if the API is ready to accept traffic.

    This is a lightweight check for load balancers and orchestrators.
    """
    return {"ready": True}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the API process is alive.",
)
async def liveness_check() -> dict:
    """Check if the API process is alive."""
    return {"alive": True}


# =============================================================================
# Diagnostics Endpoint
# =============================================================================

class ServiceStatus(BaseModel):
    """Status of a backing service."""
    name: str
    status: str  # healthy, unhealthy, unknown
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class DiagnosticsResponse(BaseModel):
    """Comprehensive diagnostics response."""
    timestamp: datetime
    status: str
    version: str
    environment: str

    services: list[ServiceStatus]

    # Debugging info
    recent_errors: list[dict] = Field(default_factory=list)
    request_logs: list[dict] = Field(default_factory=list)

    projects_count: int = 0

    # Configuration (non-sensitive)
    config: dict = Field(default_factory=dict)


@router.get(
    "/diagnostics",
    response_model=DiagnosticsResponse,
    summary="System diagnostics",
    description="Get system diagnostics for debugging.",
)
async def get_diagnostics(settings: SettingsDep, catalog: CatalogDep) -> DiagnosticsResponse:
    """
    Get detailed system diagnostics.

    Returns:
    - Health of the project store
    - Recent errors (last 100)
    - Recent request logs (last 50)
    - Environment info
    """
    store = catalog.store
    started = datetime.now(timezone.utc)
    projects_count = 0
    try:
        healthy = store.ping()
        latency = (datetime.now(timezone.utc) - started).total_seconds() * 1000
        if healthy:
            projects_count = store.count()
        storage = ServiceStatus(
            name=f"storage:{store.backend}",
            status="healthy" if healthy else "unhealthy",
            latency_ms=latency,
        )
    except Exception as e:
        storage = ServiceStatus(
            name=f"storage:{store.backend}",
            status="unhealthy",
            message=str(e)[:100],
        )

    return DiagnosticsResponse(
        timestamp=datetime.now(timezone.utc),
        status="healthy" if storage.status == "healthy" else "unhealthy",
        version=settings.app_version,
        environment=settings.environment,
        services=[storage],
        recent_errors=list(_recent_errors),
        request_logs=list(_recent_requests)[-50:],  # Last 50 requests
        projects_count=projects_count,
        config={
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug,
            "cors_origins": settings.cors_origins,
            "storage_backend": settings.storage_backend,
        },
    )
