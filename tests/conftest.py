"""
Global pytest fixtures for the URL shortener test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide isolated in-memory storage for direct testing
    - Provide a ShorteningService fixture wired to that storage
    - Provide scripted code strategies to force collisions deterministically

Why an app factory?
    Using `create_app()` ensures each test gets fresh in-memory state,
    eliminating cross-test flakiness.
"""

import itertools

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortener_platform.config import load_settings
from shortener_platform.manager.shortening_service import ShorteningService
from shortener_platform.manager.strategies import BaseStrategy
from shortener_platform.storage.storage import MemoryStorage

BASE_URL = "http://short.test"


class ScriptedStrategy(BaseStrategy):
    """Yields the given codes in order, then a numbered fallback."""

    def __init__(self, *codes):
        self._codes = iter(codes)
        self._fallback = (f"gen{n:05d}" for n in itertools.count())

    def generate(self) -> str:
        return next(self._codes, None) or next(self._fallback)


@pytest.fixture
def storage() -> MemoryStorage:
    """Provide a fresh in-memory storage backend."""
    return MemoryStorage()


@pytest.fixture
def service(storage: MemoryStorage):
    """ShorteningService wired to the storage fixture; deleter closed on teardown."""
    svc = ShorteningService(storage=storage, base_url=BASE_URL)
    yield svc
    svc.deleter.close()


@pytest.fixture
def client(monkeypatch) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance on in-memory storage.

    Used as a context manager so the app's lifespan (deleter shutdown) runs.
    """
    monkeypatch.setenv("SHORTENER_STORAGE_BACKEND", "memory")
    monkeypatch.setenv("SHORTENER_BASE_URL", BASE_URL)
    app = create_app(settings=load_settings())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def scripted(storage):
    """Build services whose strategy yields the given codes first."""
    services = []

    def _build(*codes, max_retries=5):
        svc = ShorteningService(storage, BASE_URL, strategy=ScriptedStrategy(*codes), max_retries=max_retries)
        services.append(svc)
        return svc

    yield _build
    for svc in services:
        svc.deleter.close()
