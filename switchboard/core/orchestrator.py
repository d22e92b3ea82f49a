"""
Module Orchestrator for the Switchboard host.

Drives every module declared in the definition through its load sequence:

  resolve module -> config -> routes -> jobs -> connections
      -> initialize -> validate -> publish

Top-level connections are registered before the first module loads. Modules
load one at a time. A failure anywhere in a module's sequence drops that
module only; publication (host routes, cron timers, running table) happens
last, so a module that fails is never partially visible.
"""

import logging
from typing import Any, Dict, List, Optional

from .config_resolver import resolve_config
from .connections import Connection
from .context import SwitchboardContext
from .exceptions import ModuleLoadError, ModuleValidationError, SwitchboardError
from .jobs import Job, JobDefinition, JobStatus
from .modules import ActiveModule, ConnectionRequest, SwitchboardModule
from .routes import RouteMounter
from ..schemas.definition import ModuleDefinition
from ..utils.logger import LoggerAdapter
from ..utils.metrics import record_module_load, set_active_modules

logger = logging.getLogger(__name__)


class ModuleOrchestrator:
    """Loads modules and keeps the table of running modules."""

    def __init__(self, context: SwitchboardContext, environ: Optional[Dict[str, str]] = None):
        self.context = context
        self.mounter = RouteMounter(context.auth_gate)
        self._environ = environ
        self._running: Dict[str, ActiveModule] = {}
        context.orchestrator = self

    def register_connections(self) -> int:
        """Register every top-level connection; returns how many succeeded."""
        registered = 0
        for definition in self.context.definition.connections:
            if definition.path and definition.scope:
                logger.error(f"Connection {definition.name} sets both path and scope; skipping it")
                continue
            try:
                self.context.connections.register(definition)
                registered += 1
            except SwitchboardError as e:
                logger.error(f"Unable to register connection {definition.name}: {e}")
        return registered

    async def load_modules(self) -> List[ActiveModule]:
        """
        Register connections, then load every declared module in order.

        Returns:
            The running modules
        """
        self.register_connections()

        for name, definition in self.context.definition.modules.items():
            await self.load_module(name, definition)

        set_active_modules(len(self._running))
        logger.info(f"{len(self._running)} of {len(self.context.definition.modules)} module(s) running")
        return self.list_running_modules()

    async def load_module(self, name: str, definition: ModuleDefinition) -> Optional[ActiveModule]:
        """Load one module; returns ``None`` (logged) when it could not be loaded."""
        log = LoggerAdapter(logger).bind(switchboard_module=name)

        if definition.path and definition.scope:
            log.error(f"Module {name} sets both path and scope; skipping it")
            record_module_load("skipped")
            return None

        try:
            module = self.context.resolver.resolve_module(name, path=definition.path, scope=definition.scope)
        except SwitchboardError as e:
            log.error(f"Unable to load module {name}: {e}")
            record_module_load("skipped")
            return None

        if module.name in self._running:
            log.error(f"A module named {module.name} is already running; skipping {name}")
            record_module_load("skipped")
            return None

        module.global_config = dict(self.context.definition.global_config)
        connections: Dict[str, Connection] = {}
        stage = "config"

        try:
            overrides = module.load_config(dict(definition.config))
            config = resolve_config(module.name, module.default_config(), overrides, environ=self._environ)

            stage = "routes"
            root_path = self.context.module_root_path(module.name)
            descriptors = list(module.load_routes(config) or [])
            router = self.mounter.mount(descriptors, root_path)

            stage = "jobs"
            jobs = self._load_jobs(module, definition.job_definitions(), log)

            stage = "connections"
            requests = list(module.load_connections(config, router) or [])
            self._connect(module, requests, connections, log)

            active = ActiveModule(
                name=module.name,
                module=module,
                config=config,
                root_path=root_path,
                router=router,
                routes=descriptors,
                jobs=jobs,
                connections=connections,
            )

            stage = "initialize"
            if not await module.initialize(active):
                raise ModuleValidationError(module.name, stage)

            stage = "validate"
            if not await module.validate(active):
                raise ModuleValidationError(module.name, stage)

        except Exception as e:
            log.error(
                f"Module {module.name} failed to load ({stage}): {e}",
                exc_info=not isinstance(e, SwitchboardError)
            )
            self._disconnect(connections, log)
            module.active = None
            record_module_load("failed")
            return None

        self._publish(active, log)
        record_module_load("loaded")
        return active

    def list_running_modules(self) -> List[ActiveModule]:
        return list(self._running.values())

    def get_module_by_name(self, name: str) -> Optional[ActiveModule]:
        return self._running.get(name)

    async def shutdown(self) -> None:
        """Stop every cron timer and disconnect every connection."""
        await self.context.scheduler.stop()
        for active in self._running.values():
            self._disconnect(active.connections, LoggerAdapter(logger).bind(switchboard_module=active.name))
        self._running.clear()
        set_active_modules(0)

    def _load_jobs(self, module: SwitchboardModule, definitions: List[JobDefinition], log: Any) -> List[Job]:
        jobs: List[Job] = []
        for definition in definitions:
            try:
                jobs.extend(module.load_jobs([definition]))
            except SwitchboardError as e:
                log.error(f"Unable to create job {definition.type} for module {module.name}: {e}")
        return jobs

    def _connect(
        self,
        module: SwitchboardModule,
        requests: List[ConnectionRequest],
        connections: Dict[str, Connection],
        log: Any,
    ) -> None:
        for request in requests:
            if request.name in connections:
                log.warning(f"Connection {request.name} requested more than once by {module.name}; keeping the first")
                continue

            connection = self.context.connections.instantiate(request.name, request.config)
            if connection is None:
                if request.required:
                    raise ModuleLoadError(
                        module.name,
                        f"Required connection {request.name} is not available",
                        stage="connections"
                    )
                log.warning(f"Connection {request.name} is not available; {module.name} continues without it")
                continue

            connections[request.name] = connection

    @staticmethod
    def _disconnect(connections: Dict[str, Connection], log: Any) -> None:
        for name, connection in connections.items():
            try:
                connection.disconnect()
            except Exception as e:
                log.error(f"Unable to disconnect {name}: {e}")

    def _publish(self, active: ActiveModule, log: Any) -> None:
        self.context.host.include_router(active.router)

        for job in active.jobs:
            if job.status == JobStatus.SCHEDULED:
                self.context.scheduler.add(job)

        self._running[active.name] = active
        log.info(
            f"Module {active.name} is running with {len(active.routes)} route(s), "
            f"{len(active.jobs)} job(s) and {len(active.connections)} connection(s)"
        )
