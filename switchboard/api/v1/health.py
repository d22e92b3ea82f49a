# switchboard/api/v1/health.py

from fastapi import APIRouter, Depends

from ..dependencies import get_context
from ...core.context import SwitchboardContext
from ...schemas.module import HealthResponse

router = APIRouter(
    prefix="/health",
    tags=["health"],
)


@router.get("", response_model=HealthResponse, summary="Liveness and scheduler status")
async def health_check(context: SwitchboardContext = Depends(get_context)) -> HealthResponse:
    orchestrator = context.orchestrator
    modules = len(orchestrator.list_running_modules()) if orchestrator else 0

    return HealthResponse(
        status="healthy",
        modules=modules,
        scheduled_jobs=len(context.scheduler.jobs),
        scheduler_running=context.scheduler.running,
    )
