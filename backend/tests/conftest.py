"""
Shared fixtures: an in-memory object store, seeding helpers and an
authenticated API client.
"""

import base64
import os
import tempfile

os.environ.setdefault(
    "LOGS_DIR", tempfile.mkdtemp(prefix="image_browser_test_logs_", dir="/tmp")
)

import pytest
from fastapi.testclient import TestClient

from image_browser.config import settings
from image_browser.dependencies import get_store
from image_browser.errors import StoreError
from image_browser.main import api_app, app
from image_browser.storage import MemoryObjectStore


class FlakyStore(MemoryObjectStore):
    """Memory store whose calls fail for selected keys."""

    def __init__(self):
        super().__init__()
        self.fail_put: set[str] = set()
        self.fail_get: set[str] = set()
        self.fail_delete: set[str] = set()
        self.fail_list = False
        self.fail_list_prefixes: set[str] = set()

    async def put(self, key, body, content_type=None, metadata=None):
        if key in self.fail_put:
            raise StoreError(f"Simulated put failure for '{key}'")
        return await super().put(key, body, content_type, metadata)

    async def get(self, key):
        if key in self.fail_get:
            raise StoreError(f"Simulated get failure for '{key}'")
        return await super().get(key)

    async def delete(self, key):
        if key in self.fail_delete:
            raise StoreError(f"Simulated delete failure for '{key}'")
        return await super().delete(key)

    async def list(self, prefix="", delimiter=None, limit=1000, cursor=None):
        if self.fail_list or prefix in self.fail_list_prefixes:
            raise StoreError("Simulated list failure")
        return await super().list(prefix, delimiter, limit, cursor)


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def seed(store):
    async def put_all(objects: dict[str, int | bytes]):
        """Store each key with either the given bytes or that many filler bytes."""
        for key, content in objects.items():
            body = content if isinstance(content, bytes) else b"x" * content
            await store.put(key, body)

    return put_all


@pytest.fixture
def auth_headers():
    token = base64.b64encode(
        f"{settings.auth.username}:{settings.auth.password}".encode()
    ).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def client(store):
    api_app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        api_app.dependency_overrides.clear()
