# -*- coding: utf-8 -*-
"""Tests for the request ID middleware."""

# Standard
from unittest.mock import AsyncMock, MagicMock, Mock, patch

# Third-Party
from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

# First-Party
from rolegraph.middleware.correlation_id import CorrelationIDMiddleware
from rolegraph.models import Relation
from rolegraph.routers.links import links_router
from rolegraph.services.role_manager import RoleManager
from rolegraph.utils.correlation_id import get_correlation_id


@pytest.fixture
def app():
    """Create a test FastAPI app with the request ID middleware."""
    test_app = FastAPI()
    test_app.add_middleware(CorrelationIDMiddleware)

    @test_app.get("/test")
    async def test_endpoint():
        return {"correlation_id": get_correlation_id()}

    return test_app


@pytest.fixture
def client(app):
    """Create a test client."""
    return TestClient(app)


def test_middleware_generates_correlation_id_when_not_provided(client):
    response = client.get("/test")

    assert response.status_code == 200
    data = response.json()
    assert len(data["correlation_id"]) == 32  # UUID hex format
    assert response.headers["X-Correlation-ID"] == data["correlation_id"]


def test_middleware_preserves_client_correlation_id(client):
    response = client.get("/test", headers={"X-Correlation-ID": "client-provided-id-123"})

    assert response.json()["correlation_id"] == "client-provided-id-123"
    assert response.headers["X-Correlation-ID"] == "client-provided-id-123"


def test_middleware_case_insensitive_header(client):
    response = client.get("/test", headers={"x-correlation-id": "lowercase-header-id"})

    assert response.json()["correlation_id"] == "lowercase-header-id"


def test_middleware_handles_blank_header(client):
    response = client.get("/test", headers={"X-Correlation-ID": "   "})

    assert len(response.json()["correlation_id"]) == 32


def test_middleware_generates_distinct_ids(client):
    first = client.get("/test").json()["correlation_id"]
    second = client.get("/test").json()["correlation_id"]

    assert first != second


def test_middleware_clears_context_after_request(client):
    client.get("/test", headers={"X-Correlation-ID": "short-lived"})

    assert get_correlation_id() is None


def test_cycle_warning_carries_request_header_id():
    directory = MagicMock()

    async def query(q):
        if q.relation is Relation.MEMBER_OF:
            return [{"kind": "Group", "metadata": {"name": "team-b"}, "spec": {"parent": "team-a"}}]
        return [{"kind": "Group", "metadata": {"name": "team-a"}, "spec": {"parent": "team-b", "children": ["team-b"]}}]

    directory.query = AsyncMock(side_effect=query)
    log = MagicMock()
    warned_under = []
    log.warning.side_effect = lambda message: warned_under.append(get_correlation_id())

    app = FastAPI()
    app.add_middleware(CorrelationIDMiddleware)
    app.include_router(links_router)
    app.state.role_manager = RoleManager(directory, logger=log)

    response = TestClient(app).post(
        "/links/check",
        json={"principal": "user:default/mike", "role": "group:default/team-b"},
        headers={"X-Correlation-ID": "policy-check-7"},
    )

    assert response.status_code == 200
    assert response.json()["linked"] is False
    assert warned_under and set(warned_under) == {"policy-check-7"}
    assert response.headers["X-Correlation-ID"] == "policy-check-7"


def test_middleware_ignores_client_id_when_not_preserving():
    mock_settings = Mock()
    mock_settings.correlation_id_header = "X-Request-ID"
    mock_settings.correlation_id_preserve = False

    app = FastAPI()
    with patch("rolegraph.middleware.correlation_id.settings", mock_settings):
        app.add_middleware(CorrelationIDMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"correlation_id": get_correlation_id()}

        client = TestClient(app)
        response = client.get("/test", headers={"X-Request-ID": "custom-id"})

    assert response.status_code == 200
    assert response.json()["correlation_id"] != "custom-id"
    assert response.headers["X-Request-ID"] == response.json()["correlation_id"]
