"""
Global fixtures for all unit tests.

This conftest provides:
- Environment variable isolation (no real connection string leaks in)
- An in-memory MongoDB (mongomock) for behavioural repository tests
- A MagicMock collection for asserting exact driver calls

These fixtures apply to ALL tests in tests/unit/.
"""

import os

import mongomock
import pytest
from unittest.mock import MagicMock

# Set test environment BEFORE any imports so cached settings never see real values
os.environ["ENVIRONMENT"] = "development"
os.environ["MONGODB_URI"] = "mongodb://localhost:27017"

from docdb.common.config import get_settings
from docdb.common.repositories import DocumentRepository
from docdb.domain import USER_KIND, User


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate tests from the developer's environment.

    Clears DOCDB_* overrides and resets cached settings before and after
    each test.
    """
    for key in list(os.environ):
        if key.startswith("DOCDB_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("DEBUG_MODE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mongo_client():
    """In-memory MongoDB client."""
    return mongomock.MongoClient()


@pytest.fixture
def collection(mongo_client):
    """The shared documents collection, empty."""
    return mongo_client["workshop"]["documents"]


@pytest.fixture
def users(collection):
    """User repository over the in-memory collection."""
    return DocumentRepository(collection, kind=USER_KIND, model=User, max_item_count=100)


@pytest.fixture
def mock_collection():
    """
    MagicMock collection with a chainable cursor.

    find() returns a cursor whose sort()/limit() return itself and which
    iterates over mock_collection.cursor_records (empty by default).
    """
    collection = MagicMock()
    collection.cursor_records = []

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.__iter__ = lambda self: iter(collection.cursor_records)
    collection.find.return_value = cursor
    collection.cursor = cursor
    return collection
