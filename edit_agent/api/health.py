"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from .. import __version__

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/")
async def health_check():
    """Basic liveness check."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "service": "edit-agent",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Ready once the refinement loop has been wired up at startup."""
    state = request.app.state
    return {
        "ready": getattr(state, "orchestrator", None) is not None,
        "chat_enabled": getattr(state, "openrouter", None) is not None,
        "image_enabled": getattr(state, "wavespeed", None) is not None,
        "timestamp": _now(),
    }
