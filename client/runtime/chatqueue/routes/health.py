"""
Chat Runtime - Health Check Routes

Provides health check endpoints for monitoring.
"""

from fastapi import APIRouter, Request
from datetime import datetime, timezone

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "ok",
        "timestamp": _now(),
        "service": "runtime-offline-queue",
    }


@router.get("/ready")
async def readiness(request: Request):
    """Readiness check - the queue has loaded its persisted state"""
    ready = getattr(request.app.state, "offline_queue", None) is not None
    return {
        "status": "ready" if ready else "starting",
        "timestamp": _now(),
    }


@router.get("/live")
async def liveness():
    """Liveness check - indicates service is running"""
    return {
        "status": "alive",
        "timestamp": _now(),
    }
