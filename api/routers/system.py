"""
System API router.

Root endpoint, health and readiness probes, metrics.
"""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from api.health import (
    API_VERSION,
    perform_full_health_check,
    perform_liveness_check,
    perform_readiness_check,
)
from api.middleware import metrics_collector, get_request_id

router = APIRouter(tags=["System"])

logger = logging.getLogger(__name__)


@router.get("/")
async def root():
    """
    API root endpoint.

    Returns basic API information and available endpoint categories.
    """
    return {
        "name": "FuelEU Ledger API",
        "version": API_VERSION,
        "status": "operational",
        "docs": "/api/docs",
        "endpoints": {
            "health": "/api/health",
            "metrics": "/api/metrics",
            "compliance": "/api/compliance/...",
            "banking": "/api/banking/...",
            "pools": "/api/pools/...",
            "routes": "/api/routes/...",
        }
    }


@router.get("/api/health")
def health_check():
    """
    Health check for load balancers and orchestrators.

    Reports ledger storage and Redis status, uptime and version.
    """
    result = perform_full_health_check()
    result["request_id"] = get_request_id()
    return result


@router.get("/api/health/live")
def liveness_check():
    """Liveness probe: the process is up."""
    return perform_liveness_check()


@router.get("/api/health/ready")
def readiness_check():
    """
    Readiness probe.

    Returns 503 until the ledger store is reachable.
    """
    result = perform_readiness_check()
    if result.get("status") != "ready":
        logger.warning("Readiness check failed: database %s", result.get("database"))
        raise HTTPException(status_code=503, detail="Service not ready")
    return result


@router.get("/api/metrics", response_class=PlainTextResponse)
async def get_metrics():
    """
    Prometheus-compatible metrics: request counts, durations, 5xx errors,
    ledger operations by outcome, uptime.
    """
    return metrics_collector.get_prometheus_metrics()


@router.get("/api/metrics/json")
async def get_metrics_json():
    """Metrics in JSON format."""
    return metrics_collector.get_metrics()
