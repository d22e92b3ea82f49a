# Import schemas for easier access from elsewhere in the application
from .definition import (
    JobDefinitionSchema, ModuleDefinition,
    ConnectionDefinition, SwitchboardDefinition
)
from .module import (
    RouteInfo, JobInfo, ModuleSummary, JobTriggerResponse,
    MessageResponse, VersionResponse, HealthResponse
)
