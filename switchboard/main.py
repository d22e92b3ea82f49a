"""
Application entry point for the Switchboard host.

``create_app`` reads the definition, builds the runtime context and the
FastAPI application. Modules load in the application's lifespan, after which
the cron scheduler starts; shutdown stops the timers and disconnects every
connection.
"""

from contextlib import asynccontextmanager
from typing import Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .api import build_api_router, build_health_router
from .api.middleware import register_middleware
from .core.config import Settings, get_settings
from .core.context import SwitchboardContext
from .core.definition import load_definition
from .core.exceptions import DefinitionError, SwitchboardError, http_status_for
from .core.loader import PluginResolver
from .core.orchestrator import ModuleOrchestrator
from .schemas.definition import SwitchboardDefinition
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    context: SwitchboardContext = app.state.switchboard

    await context.orchestrator.load_modules()
    context.scheduler.start()
    try:
        yield
    finally:
        await context.orchestrator.shutdown()


async def switchboard_error_handler(request: Request, exc: SwitchboardError) -> JSONResponse:
    return JSONResponse(status_code=http_status_for(exc), content=exc.to_dict())


def create_app(
    settings: Optional[Settings] = None,
    definition: Optional[SwitchboardDefinition] = None,
    resolver: Optional[PluginResolver] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FastAPI:
    """
    Build the host application.

    Args:
        settings: Host settings (defaults to the cached environment settings)
        definition: Definition document (defaults to the one found on disk)
        resolver: Plugin resolver, for statically registered plugins
        environ: Environment secrets are read from (defaults to ``os.environ``)

    Raises:
        DefinitionError: No usable definition could be loaded
    """
    settings = settings or get_settings()
    definition = definition or load_definition(settings)

    app = FastAPI(
        title="Switchboard",
        description="Host for pluggable integration modules",
        version=__version__,
        lifespan=lifespan,
    )

    context = SwitchboardContext.create(settings, definition, host=app, resolver=resolver)
    ModuleOrchestrator(context, environ=environ)
    app.state.switchboard = context

    register_middleware(app, environment=settings.ENVIRONMENT)
    app.add_exception_handler(SwitchboardError, switchboard_error_handler)

    app.include_router(build_health_router(context))
    app.include_router(build_api_router(context))

    return app


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT, settings.LOG_FILE)

    try:
        app = create_app(settings)
    except DefinitionError as e:
        logger.critical(f"Unable to start: {e}")
        raise SystemExit(1)

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
