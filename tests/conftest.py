"""Shared fixtures: a memory store frozen on 2024-01-10 and an API client wired to it."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from core.storage import MemoryHabitStore, get_store
from main import app

TODAY = date(2024, 1, 10)


@pytest.fixture
def store():
    return MemoryHabitStore(clock=lambda: TODAY)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    def _register(email="ada@habits.io", name="Ada", password="secret"):
        response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 200
        return response.json()
    return _register


@pytest.fixture
def auth_headers(register_user):
    token = register_user()["token"]
    return {"Authorization": f"Bearer {token}"}
