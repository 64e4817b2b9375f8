from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Request

from website.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])


def _rfc3339_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service
    health. Reports the application version and uptime since startup.

    Returns:
        HealthResponse: status "ok", RFC 3339 UTC timestamp, version, uptime.
    """
    uptime_seconds = max(0.0, time.monotonic() - request.app.state.started_at)

    return HealthResponse(
        status="ok",
        timestamp=_rfc3339_now(),
        version=request.app.state.settings.app.version,
        uptime=str(timedelta(seconds=uptime_seconds)),
        uptime_seconds=round(uptime_seconds, 3),
    )
