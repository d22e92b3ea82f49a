"""
Explicit runtime context.

Everything the orchestrator and the control surface share lives on one
``SwitchboardContext`` built at startup and stored on ``app.state``. Nothing
in the core is a module-level singleton.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .config import Settings
from .connections import ConnectionRegistry
from .loader import PluginResolver
from .scheduler import CronScheduler
from .security import AuthGate, AuthSettings
from ..schemas.definition import SwitchboardDefinition


@dataclass
class SwitchboardContext:
    settings: Settings
    definition: SwitchboardDefinition
    resolver: PluginResolver
    connections: ConnectionRegistry
    scheduler: CronScheduler
    auth_gate: AuthGate
    host: Any  # FastAPI app or APIRouter that module routers are included into
    orchestrator: Optional[Any] = None

    @classmethod
    def create(
        cls,
        settings: Settings,
        definition: SwitchboardDefinition,
        host: Any,
        resolver: Optional[PluginResolver] = None,
        scheduler: Optional[CronScheduler] = None,
    ) -> "SwitchboardContext":
        resolver = resolver or PluginResolver(settings.PROJECT_ROOT)
        return cls(
            settings=settings,
            definition=definition,
            resolver=resolver,
            connections=ConnectionRegistry(resolver),
            scheduler=scheduler or CronScheduler(),
            auth_gate=AuthGate(
                AuthSettings.from_global_config(definition.global_config),
                disabled=settings.AUTH_DISABLED,
            ),
            host=host,
        )

    @property
    def root_uri(self) -> str:
        return (self.definition.root_uri or self.settings.ROOT_URI).rstrip("/")

    def module_root_path(self, module_name: str) -> str:
        modules_root = "/" + self.settings.MODULES_ROOT.strip("/")
        return f"{self.root_uri}{modules_root}/{module_name}"
