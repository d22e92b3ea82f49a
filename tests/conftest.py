"""Test fixtures and configuration for the Switchboard host."""

from typing import Any, Callable, Dict, Optional

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from switchboard.core.config import Settings
from switchboard.core.context import SwitchboardContext
from switchboard.core.loader import PluginResolver
from switchboard.core.orchestrator import ModuleOrchestrator
from switchboard.core.scheduler import CronScheduler
from switchboard.main import create_app
from switchboard.schemas.definition import SwitchboardDefinition

from tests.support import AUTH_SECRET, sample_connection
from tests.support.sample_module import SampleModule


# ===============================
# Definition Fixtures
# ===============================

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Host settings rooted in a temporary project directory."""
    return Settings(PROJECT_ROOT=tmp_path, AUTH_DISABLED=False, ENVIRONMENT="development")


@pytest.fixture
def definition_data() -> Dict[str, Any]:
    """Raw definition document loading the sample module."""
    return {
        "global": {
            "authentication": {"secret": AUTH_SECRET, "algorithms": ["HS256"]},
        },
        "connections": [
            {"name": "testConnection"},
        ],
        "modules": {
            "test": {
                "config": {"modConfig1": "modConfig1-Override"},
                "jobs": [
                    {"type": "testJob", "options": {"jobConfig1": "jobConfig1"}},
                ],
            }
        },
    }


@pytest.fixture
def definition(definition_data) -> SwitchboardDefinition:
    return SwitchboardDefinition.model_validate(definition_data)


@pytest.fixture
def resolver(tmp_path) -> PluginResolver:
    """Plugin resolver with the sample module and connection registered."""
    resolver = PluginResolver(tmp_path)
    resolver.register("test", SampleModule)
    resolver.register("testConnection", sample_connection)
    return resolver


# ===============================
# Orchestrator Fixtures
# ===============================

@pytest.fixture
def make_orchestrator(settings, resolver) -> Callable[..., ModuleOrchestrator]:
    """Factory for an orchestrator over a bare FastAPI host."""
    def _make(
        definition: SwitchboardDefinition,
        environ: Optional[Dict[str, str]] = None,
    ) -> ModuleOrchestrator:
        context = SwitchboardContext.create(
            settings,
            definition,
            host=FastAPI(),
            resolver=resolver,
            scheduler=CronScheduler(),
        )
        return ModuleOrchestrator(context, environ=environ or {})

    return _make


# ===============================
# Application Fixtures
# ===============================

@pytest.fixture
def app(settings, definition, resolver) -> FastAPI:
    """Create a FastAPI application for testing."""
    return create_app(settings=settings, definition=definition, resolver=resolver, environ={})


@pytest.fixture
def client(app):
    """Create a test client; entering it runs the lifespan (module loading)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make_token(scope: str = "admin", secret: str = AUTH_SECRET, **claims: Any) -> str:
        payload = {"sub": "tester", "scope": scope}
        payload.update(claims)
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make_token


@pytest.fixture
def admin_headers(make_token) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}
