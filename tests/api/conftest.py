"""
Pytest fixtures for Web API tests.

The app is built around an in-memory MongoDB so every route runs its real
repository code without a server.
"""

import os

# IMPORTANT: Set environment variables BEFORE any imports from web_api
# so cached settings are configured correctly when first loaded.
os.environ["ENVIRONMENT"] = "development"
os.environ["MONGODB_URI"] = "mongodb://localhost:27017"

import mongomock
import pytest
from fastapi.testclient import TestClient

from docdb.common.config import DocumentDBSettings
from docdb.common.database import DocumentClient
from web_api.app import create_app
from web_api.config import ApiSettings


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def document_client(mongo_client):
    settings = DocumentDBSettings(
        _env_file=None,
        mongodb_uri="mongodb://localhost:27017",
        docdb_max_item_count=50,
    )
    return DocumentClient(settings, client=mongo_client)


@pytest.fixture
def api_settings():
    return ApiSettings(_env_file=None)


@pytest.fixture
def app(document_client, api_settings):
    return create_app(document_client=document_client, api_settings=api_settings)


@pytest.fixture
def client(app):
    """FastAPI test client fixture (runs startup and shutdown)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def principal_headers():
    """Creating identity headers."""
    return {
        "X-Principal-Id": "p-1",
        "X-Principal-Name": "Grace Hopper",
        "X-Principal-Email": "grace@example.com",
    }


@pytest.fixture
def create_user(client):
    """Create a user through the API and return the response body."""

    def _create(name, email=None, headers=None):
        body = {"Name": name}
        if email is not None:
            body["Email"] = email
        response = client.post("/api/User", json=body, headers=headers or {})
        assert response.status_code == 201
        return response.json()

    return _create
