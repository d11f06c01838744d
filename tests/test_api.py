"""
Tests for the workflow REST API.
"""

import threading
import time

import pytest
from fastapi.testclient import TestClient

from agent_workflow.api.app import app
from agent_workflow.api.dependencies import get_invoker
from agent_workflow.api.routes.execution import active_runs
from agent_workflow.invokers import RegistryAgentInvoker


@pytest.fixture
def agents():
    invoker = RegistryAgentInvoker()
    invoker.register("inventory-agent", lambda payload: {"available": payload["item"] == "sku1"})
    invoker.register("payment-agent", lambda payload: {"charged": payload["inStock"]})
    return invoker


@pytest.fixture
def client(agents):
    app.dependency_overrides[get_invoker] = lambda: agents
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


ORDER_WORKFLOW = {
    "goal": "Process an order",
    "workflowType": "sequential",
    "steps": [
        {"agentId": "inventory-agent", "inputMapping": {"item": "sku1"}, "outputKey": "inventory"},
        {"agentId": "payment-agent", "inputMapping": {"inStock": "$inventory.result.available"}, "outputKey": "payment"},
    ],
}


class TestRunEndpoint:
    """Test POST /workflow/run."""

    def test_run_returns_report(self, client):
        """Test a valid definition runs and returns a camelCase report."""
        response = client.post("/workflow/run", json={"definition": ORDER_WORKFLOW})

        assert response.status_code == 200
        report = response.json()
        assert report["status"] == "SUCCESS"
        assert report["phase"] == "completed"
        assert report["runId"]
        assert report["state"]["payment"]["result"] == {"charged": True}
        assert report["state"]["payment"]["receivedInput"] == {"inStock": True}
        assert report["state"]["payment"]["agentId"] == "payment-agent"

    def test_builder_shape_accepted(self, client):
        """Test agent builder configurations are accepted as definitions."""
        definition = {
            "agentGoal": "Process an order",
            "workflowType": "sequential",
            "workflowSteps": ORDER_WORKFLOW["steps"],
        }

        response = client.post("/workflow/run", json={"definition": definition})

        assert response.status_code == 200
        assert response.json()["status"] == "SUCCESS"

    def test_invalid_definition_is_400(self, client):
        """Test a definition that fails validation is rejected before running."""
        response = client.post("/workflow/run", json={"definition": {"workflowType": "mesh"}})
        assert response.status_code == 400

    def test_missing_definition_is_422(self, client):
        """Test a body without a definition fails request validation."""
        response = client.post("/workflow/run", json={})
        assert response.status_code == 422

    def test_caller_run_id_used(self, client, agents):
        """Test the run is registered as active under the caller's id while it runs."""
        seen = {}

        def record_active(payload):
            seen["active"] = list(active_runs)
            return "ok"

        agents.register("recorder", record_active)
        definition = {"steps": [{"agentId": "recorder", "outputKey": "recorded"}]}

        response = client.post("/workflow/run", json={"definition": definition, "runId": "run-42"})

        assert response.json()["runId"] == "run-42"
        assert seen["active"] == ["run-42"]
        assert "run-42" not in active_runs

    def test_step_failure_reported(self, client, agents):
        """Test an agent failure comes back as a FAILED report, not an HTTP error."""
        def broken(payload):
            raise RuntimeError("agent crashed")

        agents.register("broken", broken)
        definition = {"steps": [{"agentId": "broken", "outputKey": "b"}]}

        response = client.post("/workflow/run", json={"definition": definition})

        assert response.status_code == 200
        report = response.json()
        assert report["status"] == "FAILED"
        assert report["failures"][0]["agentId"] == "broken"

    def test_time_budget_in_request(self, client, agents):
        """Test the request's time budget applies to the run."""
        def slow(payload):
            time.sleep(0.05)
            return "slow"

        agents.register("slow", slow)
        definition = {"steps": [{"agentId": "slow", "outputKey": "a"}, {"agentId": "slow", "outputKey": "b"}]}

        response = client.post("/workflow/run", json={"definition": definition, "timeBudgetSeconds": 0.01})

        report = response.json()
        assert report["status"] == "FAILED"
        assert report["subStatus"] == "CANCELLED"
        assert list(report["state"]) == ["a"]


class TestCancelEndpoint:
    """Test POST /workflow/{run_id}/cancel and GET /workflow/active."""

    def test_cancel_unknown_run(self, client):
        """Test cancelling a run that is not active is 404."""
        response = client.post("/workflow/nope/cancel")
        assert response.status_code == 404

    def test_cancel_sets_event(self, client):
        """Test cancelling an active run sets its cancel event."""
        cancel_event = threading.Event()
        active_runs["run-1"] = cancel_event
        try:
            listed = client.get("/workflow/active").json()
            response = client.post("/workflow/run-1/cancel")
        finally:
            active_runs.pop("run-1", None)

        assert listed == {"runs": ["run-1"]}
        assert response.status_code == 200
        assert response.json() == {"runId": "run-1", "cancelled": True}
        assert cancel_event.is_set()

    def test_duplicate_active_run_id_is_409(self, client):
        """Test a run id that is already active is refused."""
        active_runs["busy"] = threading.Event()
        try:
            response = client.post("/workflow/run", json={"definition": ORDER_WORKFLOW, "runId": "busy"})
        finally:
            active_runs.pop("busy", None)

        assert response.status_code == 409


class TestHealth:
    """Test GET /health."""

    def test_health(self, client):
        """Test the health endpoint reports the service as healthy."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
