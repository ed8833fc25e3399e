import os

# Settings are read at import time; configure before any app import.
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import bcrypt
import pytest
from fastapi.testclient import TestClient

from api.deps import build_services, get_services
from core.config import Settings
from main import app
from repositories.memory_store import MemoryStore
from services.authenticator import MemoryAuthenticator

_gensalt = bcrypt.gensalt


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(bcrypt, "gensalt", lambda rounds=4, prefix=b"2b": _gensalt(rounds, prefix))


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def authenticator():
    return MemoryAuthenticator()


@pytest.fixture
def services(store, authenticator, settings):
    return build_services(store, authenticator, settings)


@pytest.fixture
def acme(services):
    return services.registry.create_tenant("Acme Industries")


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()
