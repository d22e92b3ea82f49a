from typing import List, Optional, Dict, Any

from ..core.exceptions import JobTypeNotFoundError, RunningModuleNotFoundError
from ..core.modules import ActiveModule
from ..core.orchestrator import ModuleOrchestrator
from ..core.routes import list_routes
from ..schemas.module import JobInfo, JobTriggerResponse, ModuleSummary, RouteInfo
from ..utils.logger import LoggerAdapter, get_logger

logger = get_logger(__name__)


class ModuleService:
    """Service for inspecting running modules and triggering their jobs."""

    def __init__(self, orchestrator: ModuleOrchestrator):
        self.orchestrator = orchestrator

    def list_modules(self) -> List[ModuleSummary]:
        """Summaries of every running module, secrets masked."""
        return [self.summarize(active) for active in self.orchestrator.list_running_modules()]

    def get_module(self, module_name: str) -> ActiveModule:
        """Get a running module by name."""
        active = self.orchestrator.get_module_by_name(module_name)
        if active is None:
            raise RunningModuleNotFoundError(module_name)
        return active

    @staticmethod
    def summarize(active: ActiveModule) -> ModuleSummary:
        return ModuleSummary(
            name=active.name,
            jobs=[JobInfo(**job.as_json()) for job in active.jobs],
            routes=[RouteInfo(**route) for route in list_routes(active.router)],
            config=active.config.redacted(),
        )

    async def trigger_job(
        self,
        module_name: str,
        job_type: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> JobTriggerResponse:
        """
        Build a one-off job of ``job_type`` with ``options`` and run it once.

        The job is never scheduled. A failed run is reported through
        ``success=False``, not raised.

        Raises:
            RunningModuleNotFoundError: No running module has that name
            JobTypeNotFoundError: The module does not produce that job type
            JobValidationError: The options are not valid for the job
        """
        active = self.get_module(module_name)
        log = LoggerAdapter(logger).bind(switchboard_module=active.name, job_type=job_type)

        job = active.module.create_job(job_type, dict(options or {}))
        if job is None:
            raise JobTypeNotFoundError(module_name, job_type)

        log.info(f"Running {job_type} on demand")
        if await job.run():
            return JobTriggerResponse(
                success=True,
                message="Job completed successfully",
                job_info=JobInfo(**job.as_json()),
            )

        log.warning(f"On-demand run of {job_type} failed")
        return JobTriggerResponse(
            success=False,
            message="Job failed to run. Check logs for information about why",
            job_info=JobInfo(**job.as_json()),
        )
