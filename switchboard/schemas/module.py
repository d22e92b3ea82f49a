from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


class RouteInfo(BaseModel):
    """A mounted module route."""
    path: str = Field(..., description="Full path of the route", examples=["/nexus/m/tickets/status"])
    methods: List[str] = Field(default_factory=list, description="HTTP methods accepted on the path")


class JobInfo(BaseModel):
    """Reporting view of a job instance."""
    running_id: Optional[str] = Field(None, description="Timer id of a scheduled job; null for on-demand jobs")
    type: str = Field(..., description="Job type name", examples=["syncTickets"])
    definition: Dict[str, Any] = Field(default_factory=dict, description="Type, schedule and options the job was built from")


class ModuleSummary(BaseModel):
    """Schema for a running module in the modules listing."""
    name: str
    jobs: List[JobInfo] = Field(default_factory=list)
    routes: List[RouteInfo] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict, description="Resolved config with secret values masked")


class JobTriggerResponse(BaseModel):
    """Outcome of an on-demand job run."""
    success: bool
    message: str
    job_info: JobInfo

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "Job completed successfully",
                "job_info": {
                    "running_id": None,
                    "type": "syncTickets",
                    "definition": {"type": "syncTickets", "schedule": None, "options": {"project": "OPS"}},
                },
            }
        }
    }


class MessageResponse(BaseModel):
    message: str


class VersionResponse(BaseModel):
    name: str
    version: str


class HealthResponse(BaseModel):
    status: str = Field(..., description="Overall status", examples=["healthy"])
    modules: int = Field(..., description="Number of running modules")
    scheduled_jobs: int = Field(..., description="Number of jobs with an active cron timer")
    scheduler_running: bool
