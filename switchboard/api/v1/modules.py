from typing import List, Optional, Dict, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from ..dependencies import get_module_service
from ...core.exceptions import SwitchboardError
from ...schemas.module import JobTriggerResponse, MessageResponse, ModuleSummary
from ...services.module_service import ModuleService
from ...utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/modules",
    tags=["modules"],
    responses={
        404: {"model": MessageResponse, "description": "Module or job type not found"},
        400: {"model": MessageResponse, "description": "Invalid job options"},
        500: {"model": MessageResponse, "description": "Internal server error"},
    },
)


@router.get(
    "",
    response_model=List[ModuleSummary],
    summary="List running modules",
    description="Jobs, routes and configuration of every running module. Secret values are masked.",
)
async def list_modules(
    module_service: ModuleService = Depends(get_module_service),
) -> List[ModuleSummary]:
    return module_service.list_modules()


@router.post(
    "/{module_name}/jobs/{job_type}",
    response_model=JobTriggerResponse,
    summary="Run a job on demand",
    description="Build a one-off job of the given type with the request body as its options and run it once",
)
async def trigger_job(
    module_name: str = Path(..., description="Name of a running module"),
    job_type: str = Path(..., description="Job type produced by the module"),
    options: Optional[Dict[str, Any]] = Body(None, description="Job options"),
    module_service: ModuleService = Depends(get_module_service),
) -> JobTriggerResponse:
    """
    A job that runs and fails is still a 200 with ``success`` set to false;
    only lookups (404), invalid options (400) and unexpected errors (500)
    change the status.
    """
    try:
        return await module_service.trigger_job(module_name, job_type, options)

    except SwitchboardError:
        raise
    except Exception as e:
        logger.error(f"Failed to run job {job_type} of module {module_name}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to run job because: {str(e)}",
        )
