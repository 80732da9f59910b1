import os

# before the app module configures logging
os.environ["LOG_FILE"] = ""
os.environ["SECRET_KEY"] = "test-secret-key-for-the-attendance-tracker-suite"

import pytest
from fastapi.testclient import TestClient

ADMIN = {"email": "admin@school.edu", "password": "secret123"}


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'attendance.db'}")
    from attendance_tracker.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    client.post("/auth/sign-up", json=ADMIN)
    response = client.post("/auth/sign-in", json=ADMIN)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
