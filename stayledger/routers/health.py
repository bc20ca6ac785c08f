"""
Health Check Endpoints

- /health          - Simple status
- /health/live     - Liveness check (is process running)
- /health/ready    - Readiness check (database reachable)
- /health/detailed - Component checks (operator only)
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import text
from datetime import datetime, timezone
import time

from ..database import get_db
from ..config import settings
from ..services.reservation_lifecycle import Actor
from ..utils.dependencies import require_operator

router = APIRouter(prefix="/health", tags=["Health"])

VERSION = "1.0.0"


def get_db_health(db: Session) -> dict:
    """Check database connectivity and latency"""
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        return {
            "status": "up",
            "latency_ms": round(latency_ms, 2),
            "type": db.bind.dialect.name
        }
    except Exception as e:
        return {
            "status": "down",
            "error": str(e)[:100]
        }


@router.get("/live")
async def liveness_check():
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/ready")
async def readiness_check(db: Session = Depends(get_db)):
    """Readiness probe - checks database connectivity."""
    db_health = get_db_health(db)

    if db_health["status"] == "up":
        return {
            "status": "ready",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "status": "not_ready",
            "reason": "database_unavailable",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


@router.get("/detailed")
async def detailed_health_check(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_operator)
):
    db_health = get_db_health(db)

    return {
        "status": "unhealthy" if db_health["status"] == "down" else "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "environment": settings.environment,
        "checks": {"database": db_health},
        "config": {
            "default_tenant": settings.default_tenant,
            "default_currency": settings.default_currency,
            "max_advance_days": settings.max_advance_days,
            "rate_limit_enabled": settings.rate_limit_enabled
        }
    }


@router.get("")
@router.get("/")
async def simple_health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION
    }
