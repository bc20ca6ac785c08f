"""
Rate Limiter Configuration

In-memory storage by default; point RATE_LIMIT_STORAGE_URI at Redis when
running more than one instance.
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from ..config import settings

logger = logging.getLogger(__name__)


def get_real_client_ip(request: Request) -> str:
    """Get real client IP behind a reverse proxy"""
    # Check X-Forwarded-For header (set by proxies)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP (original client)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """Create the rate limiter with the configured storage backend."""
    logger.info(f"Rate limiter storage: {settings.rate_limit_storage_uri.split('://')[0]}")
    return Limiter(
        key_func=get_real_client_ip,
        storage_uri=settings.rate_limit_storage_uri,
        default_limits=["100/minute"],
        enabled=settings.rate_limit_enabled,
    )


# Global rate limiter instance
limiter = create_limiter()


# Per-operation limits
RATE_LIMITS = {
    "reservation_create": settings.reservation_rate_limit,
    "reservation_update": "60/minute",
    "availability_search": "60/minute",
    "calendar": "60/minute",
}


def get_rate_limit(operation: str) -> str:
    """Get rate limit for a specific operation."""
    return RATE_LIMITS.get(operation, "100/minute")
