"""
Module contract for the Switchboard host.

A module is a pluggable unit that contributes configuration, routes, jobs
and connection requests. Module authors derive from ``SwitchboardModule``
and override the hooks they need; the orchestrator calls them in a fixed
order and keeps the result as an ``ActiveModule``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter

from .config_resolver import ResolvedConfig
from .connections import Connection
from .jobs import Job, JobDefinition
from .routes import RouteDescriptor

logger = logging.getLogger(__name__)


@dataclass
class ConnectionRequest:
    """
    A module's request for an instance of a registered connection.

    When ``required`` is set and the connection cannot be built, the module
    is not loaded; otherwise it loads without that connection.
    """
    name: str
    config: Dict[str, Any] = field(default_factory=dict)
    required: bool = False


@dataclass
class ActiveModule:
    """Runtime state of a fully loaded module."""
    name: str
    module: "SwitchboardModule"
    config: ResolvedConfig
    root_path: str
    router: APIRouter
    routes: List[RouteDescriptor] = field(default_factory=list)
    jobs: List[Job] = field(default_factory=list)
    connections: Dict[str, Connection] = field(default_factory=dict)

    def get_connection(self, name: str) -> Optional[Connection]:
        return self.connections.get(name)

    def get_job(self, job_type: str) -> Optional[Job]:
        for job in self.jobs:
            if job.name == job_type:
                return job
        return None


class SwitchboardModule:
    """
    Base class for modules.

    Subclasses must set ``name``. ``job_types`` maps a job type name to the
    ``Job`` subclass that implements it; the default ``load_jobs`` builds
    instances from it, so most modules never override that hook.

    Example:
        class TicketsModule(SwitchboardModule):
            name = "tickets"
            job_types = {"syncTickets": SyncTickets}

            def default_config(self):
                return {"project": "OPS", "token": EnvValue()}

            def load_routes(self, config):
                return [RouteDescriptor("get", "/status", self.status, protected=False)]
    """

    name: str = ""
    job_types: Dict[str, Type[Job]] = {}

    def __init__(self):
        self.active: Optional[ActiveModule] = None
        self.global_config: Dict[str, Any] = {}

    def default_config(self) -> Dict[str, Any]:
        """Configuration used for keys the definition file does not set."""
        return {}

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Receive the module's config from the definition file and return the
        overrides to merge over ``default_config``. Values may be ``EnvValue``
        markers, which are read from ``<MODULE_NAME>_<key>``.
        """
        return overrides or {}

    def load_routes(self, config: ResolvedConfig) -> List[RouteDescriptor]:
        return []

    def load_jobs(self, definitions: List[JobDefinition]) -> List[Job]:
        """
        Build job instances for the given definitions. Definitions of an unknown
        type are skipped. Construction errors (invalid cron, missing options)
        propagate.
        """
        jobs = []
        for definition in definitions:
            job_class = self.job_types.get(definition.type)
            if job_class is None:
                logger.warning(f"Module {self.name} has no job of type {definition.type}")
                continue
            jobs.append(job_class(definition))
        return jobs

    def load_connections(self, config: ResolvedConfig, router: APIRouter) -> List[ConnectionRequest]:
        """
        Return the connections this module needs. ``router`` is the module's
        own router, for connections that contribute routes (webhooks, slash
        commands).
        """
        return []

    async def initialize(self, active: ActiveModule) -> bool:
        """
        Called once routes, jobs, connections and config are loaded. Stores the
        active module by default.
        """
        self.active = active
        return True

    async def validate(self, active: ActiveModule) -> bool:
        """
        Last check before the module is published, for example that its
        credentials work. Returning False keeps the module out of the host.
        """
        return True

    @property
    def config(self) -> Optional[ResolvedConfig]:
        return self.active.config if self.active else None

    def get_connection(self, name: str) -> Optional[Connection]:
        if self.active is None:
            return None
        return self.active.get_connection(name)

    def create_job(self, job_type: str, options: Optional[Dict[str, Any]] = None) -> Optional[Job]:
        """
        Build an unscheduled job of the given type, or return ``None`` when this
        module has no such job type.
        """
        jobs = self.load_jobs([JobDefinition(type=job_type, schedule=None, options=options)])
        return jobs[0] if jobs else None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
