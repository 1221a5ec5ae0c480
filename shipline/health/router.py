# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Process / store probes for container orchestration."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shipline import __version__
from shipline.core.config import settings
from shipline.database import ping

router = APIRouter(prefix="/api/health", tags=["health"])

_STARTED = time.monotonic()


def format_uptime(seconds: float) -> str:
    """``93784`` → ``"1d 2h 3m 4s"``; zero units are left out."""
    seconds = int(seconds)
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


@router.get("")
def health():
    uptime = time.monotonic() - _STARTED
    connected = ping()
    payload = {
        "status": "ok" if connected else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": {"seconds": int(uptime), "human": format_uptime(uptime)},
        "version": __version__,
        "database": {
            "connected": connected,
            "state": "connected" if connected else "disconnected",
        },
        "environment": settings.environment,
    }
    return JSONResponse(status_code=200 if connected else 503, content=payload)


@router.get("/ready")
def ready():
    if ping():
        return {"status": "ready", "message": "Application is ready to receive traffic"}
    return JSONResponse(
        status_code=503,
        content={"status": "not ready", "message": "Application is not ready to receive traffic"},
    )


@router.get("/live")
def live():
    return {
        "status": "alive",
        "message": "Application is alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
