"""Health check endpoints, used for liveness and readiness probes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from switchboard.core.config import get_settings
from switchboard.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Service container not started"}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """Return 200 once the service container is up; 503 before startup completes."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "message": "Service container not started"},
        )
    return ReadinessResponse(
        backend=get_settings().database_backend,
        workflows=len(container.workflow_registry.list_workflows(None)),
        pending_timers=container.coordinator.pending_timer_count,
    )
