from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import PlainTextResponse

from pulse.core.durations import format_duration, to_nanoseconds
from pulse.schemas.health import HealthResponse, HealthStatus

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse, response_model_exclude_none=True)
def health(request: Request):
    now = datetime.now(timezone.utc)
    return HealthResponse(
        status=HealthStatus.healthy,
        timestamp=now,
        version=request.app.version,
        uptime=format_duration(to_nanoseconds(now - request.app.state.started_at)),
    )


@router.get("/ready", response_class=PlainTextResponse)
def ready(request: Request):
    if not getattr(request.app.state, "ready", False):
        return PlainTextResponse("not ready", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return PlainTextResponse("ready")


@router.get("/live", response_class=PlainTextResponse)
def live():
    return PlainTextResponse("alive")
