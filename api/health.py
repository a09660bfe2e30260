"""
Health checks for the FuelEU Ledger API.

Used by the /api/health endpoints and by load balancer or Kubernetes
liveness and readiness probes.
"""
import logging
import time
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from enum import Enum
from dataclasses import dataclass
import redis

from api.config import settings
from api.state import get_app_state
from api.rate_limit import rate_limit_status

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


class HealthStatus(Enum):
    """Health check status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""
    name: str
    status: HealthStatus
    latency_ms: Optional[float] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_database_health() -> ComponentHealth:
    """
    Check ledger storage connectivity.

    The in-memory backend is always reported healthy.
    """
    if settings.storage_backend == "memory":
        return ComponentHealth(
            name="database",
            status=HealthStatus.HEALTHY,
            message="In-memory ledger store",
        )

    start = time.perf_counter()
    try:
        from api.database import check_connection

        check_connection()
        return ComponentHealth(
            name="database",
            status=HealthStatus.HEALTHY,
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message="Database connected",
        )
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            name="database",
            status=HealthStatus.UNHEALTHY,
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message=f"Connection failed: {type(e).__name__}",
        )


def check_redis_health() -> ComponentHealth:
    """
    Check Redis connectivity.

    Redis only backs rate limiting, so an outage degrades the service
    rather than taking it down.
    """
    if not settings.redis_enabled:
        return ComponentHealth(
            name="redis",
            status=HealthStatus.HEALTHY,
            message="Redis disabled (not required)",
        )

    start = time.perf_counter()
    try:
        client = redis.from_url(
            settings.redis_url,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        client.ping()
        return ComponentHealth(
            name="redis",
            status=HealthStatus.HEALTHY,
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message="Redis connected",
            details=rate_limit_status(),
        )
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return ComponentHealth(
            name="redis",
            status=HealthStatus.DEGRADED,
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message=f"Connection failed: {type(e).__name__}",
        )


def perform_full_health_check() -> Dict[str, Any]:
    """
    Check every component and fold the results into one status.

    Returns:
        Dict with overall status, uptime and component details
    """
    start = time.perf_counter()
    components = [check_database_health(), check_redis_health()]

    if any(c.status == HealthStatus.UNHEALTHY for c in components):
        overall_status = HealthStatus.UNHEALTHY
    elif any(c.status == HealthStatus.DEGRADED for c in components):
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    return {
        "status": overall_status.value,
        "timestamp": _timestamp(),
        "version": API_VERSION,
        "environment": settings.environment,
        "storage_backend": settings.storage_backend,
        "uptime_seconds": round(get_app_state().uptime_seconds, 2),
        "check_duration_ms": round((time.perf_counter() - start) * 1000, 2),
        "components": {
            c.name: {
                "status": c.status.value,
                "latency_ms": c.latency_ms,
                "message": c.message,
                **({"details": c.details} if c.details else {}),
            }
            for c in components
        },
    }


def perform_liveness_check() -> Dict[str, Any]:
    """Process is up; no dependency checks."""
    return {
        "status": "alive",
        "timestamp": _timestamp(),
    }


def perform_readiness_check() -> Dict[str, Any]:
    """
    Ready to accept traffic once the ledger store is reachable.
    """
    db_health = check_database_health()
    is_ready = db_health.status == HealthStatus.HEALTHY

    return {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": _timestamp(),
        "database": db_health.status.value,
    }
