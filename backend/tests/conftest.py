"""
Message Store Backend - Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_collection: MagicMock/AsyncMock collection for service unit tests
    ├── memory_collection: In-memory collection double for endpoint tests
    ├── capture_logger: Logger handed to create_app() so tests can inspect it
    ├── app: Fresh FastAPI app wired to memory_collection
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import copy
import logging
import os
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any app imports
os.environ["MONGO_URL"] = "mongodb://localhost:27017"
os.environ["MONGO_DATABASE"] = "message_store_test"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Collection Doubles
# ══════════════════════════════════════════════════════════════════════════

class _MemoryCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._documents if length is None else self._documents[:length]


def _stored(document: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``document`` with datetimes cut to milliseconds, as BSON stores them."""
    stored = copy.deepcopy(document)
    for key, value in stored.items():
        if isinstance(value, datetime):
            stored[key] = value.replace(microsecond=value.microsecond // 1000 * 1000)
    return stored


class MemoryCollection:
    """
    Dict-backed collection exposing the handful of AsyncCollection methods
    MessageService calls, filtered by `_id` only.
    """

    def __init__(self):
        self.documents: Dict[ObjectId, Dict[str, Any]] = {}
        self.database = MagicMock()
        self.database.client.admin.command = AsyncMock(return_value={"ok": 1.0})

    def find(self, filter: Dict[str, Any]):
        return _MemoryCursor([copy.deepcopy(doc) for doc in self.documents.values()])

    async def find_one(self, filter: Dict[str, Any]):
        doc = self.documents.get(filter["_id"])
        return copy.deepcopy(doc) if doc is not None else None

    async def insert_one(self, document: Dict[str, Any]):
        # pymongo sets _id on the passed document as well
        document.setdefault("_id", ObjectId())
        self.documents[document["_id"]] = _stored(document)
        return SimpleNamespace(inserted_id=document["_id"])

    async def replace_one(self, filter: Dict[str, Any], replacement: Dict[str, Any]):
        object_id = filter["_id"]
        if object_id not in self.documents:
            return SimpleNamespace(matched_count=0, modified_count=0)
        self.documents[object_id] = {"_id": object_id, **_stored(replacement)}
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def find_one_and_delete(self, filter: Dict[str, Any]):
        return self.documents.pop(filter["_id"], None)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_collection():
    """
    Provides a mock collection with the async methods MessageService awaits.

    Usage:
        async def test_get(mock_collection):
            mock_collection.find_one.return_value = {"_id": oid, ...}
    """
    collection = MagicMock()
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[])
    collection.find = MagicMock(return_value=cursor)
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.replace_one = AsyncMock()
    collection.find_one_and_delete = AsyncMock(return_value=None)
    return collection


@pytest.fixture
def memory_collection():
    return MemoryCollection()


@pytest.fixture
def sample_message_data():
    """Request body for creating a message."""
    return {"recipient": "Alice", "sender": "Bob", "content": "Hi"}


@pytest.fixture
def capture_logger():
    """A dedicated logger that propagates to caplog."""
    logger = logging.getLogger("message_store.tests")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def app(memory_collection, capture_logger):
    """Fresh application whose handlers talk to memory_collection."""
    from message_store.database import get_collection
    from message_store.main import create_app

    application = create_app(logger=capture_logger)
    application.dependency_overrides[get_collection] = lambda: memory_collection
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport routes requests directly to the app without a server and
    without running the lifespan, so no MongoDB is needed.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/messages")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
