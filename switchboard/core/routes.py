"""
Route mounting for module routers.

A module describes its HTTP surface as a list of ``RouteDescriptor``. The
``RouteMounter`` turns them into one ``APIRouter`` per module, prefixed with
the module's root path. Routes are protected unless a descriptor explicitly
says ``protected=False``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from fastapi import APIRouter, Depends
from fastapi.routing import APIRoute

from .exceptions import RouteMountError
from .security import AuthGate

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")


@dataclass
class RouteDescriptor:
    """
    One route contributed by a module.

    ``body_parser`` is an optional FastAPI dependency run before the handler,
    for routes that need the request body in a particular form (for example
    raw bytes to verify a webhook signature).
    """
    method: str
    path: str
    handler: Callable[..., Any]
    protected: Optional[bool] = None
    body_parser: Optional[Callable[..., Any]] = None
    name: Optional[str] = None

    @property
    def is_protected(self) -> bool:
        return self.protected is not False


class RouteMounter:
    """Builds module routers, wiring the authorization gate into protected routes."""

    def __init__(self, auth_gate: AuthGate):
        self.auth_gate = auth_gate

    def mount(self, descriptors: Sequence[RouteDescriptor], module_root_path: str) -> APIRouter:
        """
        Attach every descriptor to a new router rooted at ``module_root_path``.

        Raises:
            RouteMountError: A descriptor uses an unsupported HTTP method
        """
        router = APIRouter(prefix=module_root_path.rstrip("/"))
        for descriptor in descriptors:
            self.add_route(router, descriptor)
        return router

    def add_route(self, router: APIRouter, descriptor: RouteDescriptor) -> None:
        method = (descriptor.method or "").lower()
        if method not in SUPPORTED_METHODS:
            raise RouteMountError(
                f"Invalid method type ({descriptor.method}) given in route definition",
                method=descriptor.method,
                path=descriptor.path
            )

        path = descriptor.path or ""
        if path and not path.startswith("/"):
            path = f"/{path}"

        dependencies = []
        if descriptor.is_protected:
            dependencies.append(Depends(self.auth_gate))
        if descriptor.body_parser is not None:
            dependencies.append(Depends(descriptor.body_parser))

        router.add_api_route(
            path,
            descriptor.handler,
            methods=[method.upper()],
            dependencies=dependencies,
            name=descriptor.name,
        )
        logger.debug(
            f"Mounted {method.upper()} {router.prefix}{path} "
            f"({'protected' if descriptor.is_protected else 'open'})"
        )


def list_routes(router: Optional[APIRouter]) -> List[Dict[str, Any]]:
    """List the paths of a router with the methods each accepts."""
    if router is None:
        return []

    listing: Dict[str, List[str]] = {}
    for route in router.routes:
        if not isinstance(route, APIRoute):
            continue
        methods = listing.setdefault(route.path, [])
        for method in sorted(route.methods):
            if method not in methods:
                methods.append(method)

    return [{"path": path, "methods": methods} for path, methods in listing.items()]
