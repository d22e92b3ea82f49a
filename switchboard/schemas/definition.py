"""
Pydantic models for the switchboard definition document.

The definition is a JSON object:

    {
      "global": {"authentication": {...}, ...},
      "connections": [{"name": "jira", "scope": "acme_connections"}],
      "modules": {
        "tickets": {"path": "modules", "config": {"token": "__secret__"},
                    "jobs": [{"type": "sync", "schedule": "*/5 * * * *"}]}
      }
    }
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..core.config_resolver import parse_config_values
from ..core.jobs import JobDefinition


class JobDefinitionSchema(BaseModel):
    """A job entry of a module definition."""
    model_config = ConfigDict(extra="ignore")

    type: str
    schedule: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("options", mode="before")
    @classmethod
    def empty_options(cls, v):
        return {} if v is None else v

    def to_job_definition(self) -> JobDefinition:
        return JobDefinition(type=self.type, schedule=self.schedule, options=dict(self.options))


class ModuleDefinition(BaseModel):
    """
    Where to find a module and how to configure it.

    Sentinel strings in ``config`` are converted to ``EnvValue`` markers here,
    once.
    """
    model_config = ConfigDict(extra="ignore")

    path: Optional[str] = None
    scope: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    jobs: List[JobDefinitionSchema] = Field(default_factory=list)

    @field_validator("config", mode="before")
    @classmethod
    def parse_config(cls, v):
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("module config must be an object")
        return parse_config_values(v)

    @field_validator("jobs", mode="before")
    @classmethod
    def empty_jobs(cls, v):
        return [] if v is None else v

    def job_definitions(self) -> List[JobDefinition]:
        return [job.to_job_definition() for job in self.jobs]


class ConnectionDefinition(BaseModel):
    """A top-level connection registration."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    path: Optional[str] = None
    scope: Optional[str] = None
    global_config: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("globalConfig", "config", "global_config"),
    )

    @field_validator("global_config", mode="before")
    @classmethod
    def empty_global_config(cls, v):
        return {} if v is None else v


class SwitchboardDefinition(BaseModel):
    """The merged definition document."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    global_config: Dict[str, Any] = Field(default_factory=dict, alias="global")
    connections: List[ConnectionDefinition] = Field(default_factory=list)
    modules: Dict[str, ModuleDefinition] = Field(default_factory=dict)
    root_uri: Optional[str] = Field(default=None, alias="rootUri")

    @field_validator("global_config", "modules", mode="before")
    @classmethod
    def empty_mapping(cls, v):
        return {} if v is None else v

    @field_validator("connections", mode="before")
    @classmethod
    def empty_connections(cls, v):
        return [] if v is None else v
