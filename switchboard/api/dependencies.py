from fastapi import Depends, Request

from ..core.context import SwitchboardContext
from ..core.orchestrator import ModuleOrchestrator
from ..services.module_service import ModuleService


def get_context(request: Request) -> SwitchboardContext:
    return request.app.state.switchboard


def get_orchestrator(context: SwitchboardContext = Depends(get_context)) -> ModuleOrchestrator:
    return context.orchestrator


def get_module_service(orchestrator: ModuleOrchestrator = Depends(get_orchestrator)) -> ModuleService:
    return ModuleService(orchestrator)
