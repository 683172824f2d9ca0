"""Fixtures for route tests: the full app on a temporary SQLite database."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from revproj.integrations.salesforce import SalesforceClient
from revproj.web.app import create_app
from revproj.web.dependencies import get_salesforce_client


@pytest.fixture
def salesforce():
    """Salesforce client double; its coroutine methods are AsyncMocks."""
    return MagicMock(spec=SalesforceClient)


@pytest.fixture
def app(salesforce):
    test_app = create_app()
    test_app.dependency_overrides[get_salesforce_client] = lambda: salesforce
    return test_app


@pytest.fixture
def client(app):
    """Test client with lifespan run, so tables exist."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def publish(client, raw_payload):
    """Publish the sample payload and return the response body."""

    def _publish(payload=None):
        response = client.post("/api/projections", json=payload or raw_payload)
        assert response.status_code == 200, response.text
        return response.json()

    return _publish
