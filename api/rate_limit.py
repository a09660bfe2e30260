"""
Rate limiting for the ledger's mutating endpoints using Redis and SlowAPI.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
import redis
import logging

from api.config import settings

logger = logging.getLogger(__name__)

# Initialize Redis client
redis_client = None
if settings.redis_enabled:
    try:
        redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5
        )
        # Test connection
        redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        logger.warning("Rate limiting will not work without Redis")
        redis_client = None


def get_client_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting.

    Uses the first X-Forwarded-For hop when behind a proxy, otherwise the
    peer address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{get_remote_address(request)}"


# Initialize limiter
limiter = Limiter(
    key_func=get_client_identifier,
    enabled=settings.rate_limit_enabled and redis_client is not None,
    storage_uri=settings.redis_url if redis_client else None,
    strategy="fixed-window"
)


def get_rate_limit_string() -> str:
    """
    Get rate limit string for use with @limiter.limit() decorator.

    Returns:
        str: Combined limit, e.g. "60/minute;1000/hour"
    """
    return f"{settings.rate_limit_per_minute}/minute;{settings.rate_limit_per_hour}/hour"


def rate_limit_status() -> dict:
    """Rate limiter state for the health report."""
    return {
        "enabled": bool(limiter.enabled),
        "backend": "redis" if redis_client is not None else "none",
        "per_minute": settings.rate_limit_per_minute,
        "per_hour": settings.rate_limit_per_hour,
    }
