# switchboard/api/__init__.py

from fastapi import APIRouter, Depends

from .v1.modules import router as modules_router
from .v1.system import router as system_router
from .v1.health import router as health_router
from ..core.context import SwitchboardContext
from ..core.security import require_scope


def build_api_router(context: SwitchboardContext) -> APIRouter:
    """
    Control surface under ``<root>/api``. Every route needs a verified token
    carrying the admin scope.
    """
    api_router = APIRouter(
        prefix=f"{context.root_uri}/api",
        dependencies=[
            Depends(context.auth_gate),
            Depends(require_scope(context.settings.ADMIN_SCOPE)),
        ],
    )

    api_router.include_router(modules_router)
    api_router.include_router(system_router)

    return api_router


def build_health_router(context: SwitchboardContext) -> APIRouter:
    """Unguarded health check under ``<root>/health``."""
    root_router = APIRouter(prefix=context.root_uri)
    root_router.include_router(health_router)
    return root_router


__all__ = ["build_api_router", "build_health_router"]
