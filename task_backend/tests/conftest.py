import os

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"

# Must be in place before the app module reads its settings.
os.environ["JWT_SECRET"] = TEST_SECRET
os.environ.setdefault("DATABASE_URL", "memory://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.api.main import app  # noqa: E402
from src.api.repositories import get_store, open_store  # noqa: E402


@pytest.fixture
def store():
    """A fresh in-memory store per test."""
    return open_store("memory://")


@pytest.fixture(autouse=True)
def _use_test_store(store):
    app.dependency_overrides[get_store] = lambda: store
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def make_client():
    """Return a factory of TestClients; each has its own cookie jar (one per simulated user)."""
    clients = []

    def _make(**kwargs) -> TestClient:
        c = TestClient(app, **kwargs)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()


@pytest.fixture
def client(make_client):
    return make_client()


def register(client: TestClient, name="Ann", email="a@x.com", password="secret1") -> dict:
    res = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()["user"]


@pytest.fixture
def alice(make_client):
    c = make_client()
    register(c, name="Alice", email="alice@x.com")
    return c


@pytest.fixture
def bob(make_client):
    c = make_client()
    register(c, name="Bob", email="bob@y.com")
    return c
