import pytest
from fastapi.testclient import TestClient

import salespulse.redis_store as redis_store
from salespulse.database import MemoryStore, get_store
from salespulse.main import app


@pytest.fixture(autouse=True)
def no_event_log(monkeypatch):
    # keep tests off any local Redis
    monkeypatch.setattr(redis_store, "SAVE_LOGS", False)
    monkeypatch.setattr(redis_store, "client", lambda: None)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
