"""Health check endpoints for Kubernetes probes."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field
from redis import RedisError

from rbacmanager.config.settings import settings
from rbacmanager.core.exceptions import CollaboratorError
from rbacmanager.core.logging import get_logger
from rbacmanager.db.kubernetes import get_api_client
from rbacmanager.db.redis import get_redis_client

logger = get_logger(__name__)

router = APIRouter()

APP_START_TIME = datetime.now(timezone.utc)


class HealthStatus(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Overall health status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Application environment")


class ReadinessStatus(BaseModel):
    """Readiness check response model."""

    ready: bool = Field(..., description="Whether the application is ready")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: Dict[str, bool] = Field(
        default_factory=dict, description="Individual readiness checks"
    )
    message: Optional[str] = Field(None, description="Additional status message")


def check_redis() -> bool:
    try:
        return bool(get_redis_client().ping())
    except RedisError as e:
        logger.warning(f"Readiness: Redis unavailable: {e}")
        return False


def check_kubernetes() -> bool:
    try:
        get_api_client()
        return True
    except CollaboratorError as e:
        logger.warning(f"Readiness: Kubernetes unavailable: {e}")
        return False


@router.get(
    settings.health_check_path,
    response_model=HealthStatus,
    summary="Health Check",
    description="Kubernetes liveness probe endpoint",
)
async def health_check() -> HealthStatus:
    """Liveness: the process is up and serving."""
    uptime = (datetime.now(timezone.utc) - APP_START_TIME).total_seconds()
    return HealthStatus(
        status="healthy",
        uptime_seconds=uptime,
        version=settings.app_version,
        environment=settings.environment.value,
    )


@router.get(
    settings.readiness_check_path,
    response_model=ReadinessStatus,
    responses={503: {"description": "A collaborator is unavailable"}},
    summary="Readiness Check",
    description="Kubernetes readiness probe endpoint",
)
def readiness_check(response: Response) -> ReadinessStatus:
    """Readiness: Redis and the Kubernetes API client are usable."""
    checks: Dict[str, Any] = {
        "redis": check_redis(),
        "kubernetes": check_kubernetes(),
    }
    ready = all(checks.values())

    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        failing = ", ".join(name for name, ok in checks.items() if not ok)
        return ReadinessStatus(ready=False, checks=checks, message=f"Not ready: {failing}")

    return ReadinessStatus(ready=True, checks=checks, message="Ready")
