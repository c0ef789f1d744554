"""
Global pytest fixtures for the Short-link Registry test suite.

Responsibilities:
    - Provide isolated in-memory Storage, ClickRecorder, LinkRegistry and
      RedirectResolver fixtures for direct testing
    - Provide a fresh FastAPI TestClient via the app factory, wired to the
      same Storage fixture and a static token table, for integration tests

Why an app factory?
    Using `create_app()` ensures each test gets fresh in-memory state,
    eliminating cross-test flakiness.
"""

from typing import Dict

import pytest
from fastapi.testclient import TestClient

from auth.service import StaticTokenIdentityProvider
from main import create_app
from shortlink_registry.analytics.analytics import ClickRecorder
from shortlink_registry.manager.link_registry import LinkRegistry
from shortlink_registry.manager.redirect_resolver import RedirectResolver
from shortlink_registry.storage.storage import Storage

TOKENS = {"token-u1": "u1", "token-u2": "u2"}


@pytest.fixture
def storage() -> Storage:
    """Provide a fresh in-memory Storage backend."""
    return Storage()


@pytest.fixture
def recorder(storage: Storage):
    """Click recorder using the atomic counter; shut down after the test."""
    rec = ClickRecorder(storage, atomic_increment=True, max_workers=2)
    yield rec
    rec.shutdown(wait=True)


@pytest.fixture
def registry(storage: Storage) -> LinkRegistry:
    return LinkRegistry(storage=storage)


@pytest.fixture
def resolver(storage: Storage, recorder: ClickRecorder) -> RedirectResolver:
    return RedirectResolver(storage=storage, click_recorder=recorder)


@pytest.fixture
def identity_provider() -> StaticTokenIdentityProvider:
    return StaticTokenIdentityProvider(TOKENS)


@pytest.fixture
def client(storage: Storage, recorder: ClickRecorder, identity_provider) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance.

    Storage and recorder are the same objects as the fixtures, so tests can
    inspect state behind the API and drain pending click writes.
    """
    app = create_app(storage=storage, identity_provider=identity_provider, click_recorder=recorder)
    return TestClient(app)


@pytest.fixture
def u1_headers() -> Dict[str, str]:
    return {"Authorization": "Bearer token-u1"}


@pytest.fixture
def u2_headers() -> Dict[str, str]:
    return {"Authorization": "Bearer token-u2"}
