"""Tests for mounting module routes behind the authorization gate."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from switchboard.core.exceptions import RouteMountError, SwitchboardError
from switchboard.core.routes import RouteDescriptor, RouteMounter, list_routes
from switchboard.core.security import AuthGate, AuthSettings
from switchboard.main import switchboard_error_handler

from tests.support import AUTH_SECRET


async def hello():
    return {"hello": "world"}


async def echo(payload: dict):
    return payload


@pytest.fixture
def mounter() -> RouteMounter:
    return RouteMounter(AuthGate(AuthSettings(secret=AUTH_SECRET, algorithms=["HS256"])))


def build_client(router) -> TestClient:
    app = FastAPI()
    app.add_exception_handler(SwitchboardError, switchboard_error_handler)
    app.include_router(router)
    return TestClient(app)


def test_routes_are_protected_by_default(mounter):
    router = mounter.mount([RouteDescriptor("get", "/hello", hello)], "/nexus/m/test")
    client = build_client(router)

    response = client.get("/nexus/m/test/hello")
    assert response.status_code == 401


def test_protected_route_accepts_valid_token(mounter, admin_headers):
    router = mounter.mount([RouteDescriptor("get", "/hello", hello, protected=True)], "/nexus/m/test")
    client = build_client(router)

    response = client.get("/nexus/m/test/hello", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"hello": "world"}


def test_open_route_skips_gate(mounter):
    router = mounter.mount([RouteDescriptor("get", "/hello", hello, protected=False)], "/nexus/m/test")
    client = build_client(router)

    assert client.get("/nexus/m/test/hello").status_code == 200


def test_method_is_case_insensitive(mounter):
    router = mounter.mount([RouteDescriptor("POST", "/echo", echo, protected=False)], "/nexus/m/test")
    client = build_client(router)

    response = client.post("/nexus/m/test/echo", json={"a": 1})
    assert response.json() == {"a": 1}


def test_unsupported_method_is_fatal(mounter):
    with pytest.raises(RouteMountError) as exc_info:
        mounter.mount([RouteDescriptor("fetch", "/hello", hello)], "/nexus/m/test")
    assert exc_info.value.method == "fetch"


def test_body_parser_runs_before_handler(mounter):
    calls = []

    def parser():
        calls.append("parsed")

    router = mounter.mount(
        [RouteDescriptor("get", "/hello", hello, protected=False, body_parser=parser)],
        "/nexus/m/test",
    )
    build_client(router).get("/nexus/m/test/hello")
    assert calls == ["parsed"]


def test_list_routes(mounter):
    router = mounter.mount(
        [
            RouteDescriptor("get", "/hello", hello),
            RouteDescriptor("post", "/hello", echo),
            RouteDescriptor("get", "status", hello, protected=False),
        ],
        "/nexus/m/test",
    )

    assert list_routes(router) == [
        {"path": "/nexus/m/test/hello", "methods": ["GET", "POST"]},
        {"path": "/nexus/m/test/status", "methods": ["GET"]},
    ]


def test_list_routes_without_router():
    assert list_routes(None) == []
