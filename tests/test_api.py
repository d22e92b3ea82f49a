"""Tests for the control API and the routes modules publish."""

from fastapi.testclient import TestClient

from switchboard.core.config_resolver import REDACTED
from switchboard.main import create_app
from switchboard.schemas.definition import SwitchboardDefinition


# ===============================
# Authorization
# ===============================

def test_modules_requires_token(client):
    response = client.get("/nexus/api/modules")

    assert response.status_code == 401
    assert response.json()["error_code"] == "AUTHENTICATION_ERROR"


def test_modules_requires_admin_scope(client, make_token):
    headers = {"Authorization": f"Bearer {make_token(scope='read')}"}
    response = client.get("/nexus/api/modules", headers=headers)

    assert response.status_code == 403
    assert response.json()["error_code"] == "AUTHORIZATION_ERROR"


# ===============================
# Module listing
# ===============================

def test_list_modules(client, admin_headers):
    response = client.get("/nexus/api/modules", headers=admin_headers)
    assert response.status_code == 200

    [module] = response.json()
    assert module["name"] == "test"
    assert module["config"] == {"modConfig1": "modConfig1-Override", "modConfig2": "modConfig2"}
    assert module["jobs"] == [{
        "running_id": None,
        "type": "testJob",
        "definition": {"type": "testJob", "schedule": None, "options": {"jobConfig1": "jobConfig1"}},
    }]
    assert {"path": "/nexus/m/test/status", "methods": ["GET"]} in module["routes"]
    assert {"path": "/nexus/m/test/private", "methods": ["GET"]} in module["routes"]


def test_list_modules_masks_secrets(settings, definition_data, resolver, admin_headers):
    definition_data["modules"]["test"]["config"]["modConfig2"] = "__secret__"
    app = create_app(
        settings=settings,
        definition=SwitchboardDefinition.model_validate(definition_data),
        resolver=resolver,
        environ={"TEST_modConfig2": "hunter2"},
    )

    with TestClient(app) as client:
        response = client.get("/nexus/api/modules", headers=admin_headers)

    assert response.status_code == 200
    config = response.json()[0]["config"]
    assert config["modConfig2"] == REDACTED
    assert "hunter2" not in response.text


def test_list_modules_empty_when_nothing_loaded(settings, resolver, admin_headers, definition_data):
    definition_data["modules"] = {"ghost": {"scope": "tests.support.nothing_here"}}
    app = create_app(
        settings=settings,
        definition=SwitchboardDefinition.model_validate(definition_data),
        resolver=resolver,
        environ={},
    )

    with TestClient(app) as client:
        response = client.get("/nexus/api/modules", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == []


# ===============================
# On-demand jobs
# ===============================

def test_trigger_job_success(client, admin_headers):
    response = client.post("/nexus/api/modules/test/jobs/testJob", headers=admin_headers, json={"a": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Job completed successfully"
    assert body["job_info"]["type"] == "testJob"
    assert body["job_info"]["definition"]["options"] == {"a": 1}
    assert body["job_info"]["running_id"] is None


def test_trigger_job_without_body(client, admin_headers):
    response = client.post("/nexus/api/modules/test/jobs/testJob", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_trigger_job_that_raises(client, admin_headers):
    response = client.post("/nexus/api/modules/test/jobs/failingJob", headers=admin_headers, json={})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert "Check logs" in body["message"]


def test_trigger_job_that_returns_false(client, admin_headers):
    response = client.post("/nexus/api/modules/test/jobs/unsuccessfulJob", headers=admin_headers, json={})

    assert response.status_code == 200
    assert response.json()["success"] is False


def test_trigger_job_unknown_module(client, admin_headers):
    response = client.post("/nexus/api/modules/ghost/jobs/testJob", headers=admin_headers, json={})

    assert response.status_code == 404
    assert response.json()["error_code"] == "MODULE_NOT_FOUND"


def test_trigger_job_unknown_type(client, admin_headers):
    response = client.post("/nexus/api/modules/test/jobs/ghostJob", headers=admin_headers, json={})

    assert response.status_code == 404
    assert response.json()["error_code"] == "JOB_TYPE_NOT_FOUND"


def test_trigger_job_missing_required_option(client, admin_headers):
    response = client.post("/nexus/api/modules/test/jobs/requiredJob", headers=admin_headers, json={})

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "VALIDATION_ERROR"
    assert body["details"]["field"] == "jobConfig1"


def test_trigger_job_with_required_option(client, admin_headers):
    response = client.post(
        "/nexus/api/modules/test/jobs/requiredJob",
        headers=admin_headers,
        json={"jobConfig1": "value"},
    )

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_trigger_job_does_not_schedule(client, admin_headers):
    client.post("/nexus/api/modules/test/jobs/testJob", headers=admin_headers, json={})

    response = client.get("/nexus/health")
    assert response.json()["scheduled_jobs"] == 0


def test_trigger_job_requires_token(client):
    assert client.post("/nexus/api/modules/test/jobs/testJob", json={}).status_code == 401


# ===============================
# Module routes
# ===============================

def test_open_module_route(client):
    response = client.get("/nexus/m/test/status")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "module": "test"}


def test_protected_module_route(client, admin_headers):
    assert client.get("/nexus/m/test/private").status_code == 401

    response = client.get("/nexus/m/test/private", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"secret": "area"}


# ===============================
# System endpoints
# ===============================

def test_health(client):
    response = client.get("/nexus/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["modules"] == 1
    assert body["scheduler_running"] is True


def test_version(client, admin_headers):
    response = client.get("/nexus/api/version", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["name"] == "nexus-switchboard"


def test_metrics(client, admin_headers):
    client.post("/nexus/api/modules/test/jobs/testJob", headers=admin_headers, json={})
    response = client.get("/nexus/api/metrics", headers=admin_headers)

    assert response.status_code == 200
    assert "switchboard_job_run_count_total" in response.text


def test_request_id_header(client):
    response = client.get("/nexus/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
