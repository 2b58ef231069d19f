"""
This file contains shared fixtures and configuration for the test suite.

Pytest will automatically discover and use the fixtures defined in this file.

The application is pointed at a throwaway SQLite database and upload directory
before any ``app`` module is imported, and every test starts from empty tables.
"""

import asyncio
import os
import tempfile
from collections.abc import Callable, Generator
from typing import Any

_TEST_ROOT = tempfile.mkdtemp(prefix="task_tracker_tests_")
os.environ["TASK_TRACKER_DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{os.path.join(_TEST_ROOT, 'test.db')}"
)
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["LOG_TO_FILE"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tests.helpers import PASSWORD, auth_headers, task_payload  # noqa: E402


@pytest.fixture(scope="session")
def app() -> FastAPI:
    """
    Create a new application instance for the test session.
    """
    # Import the factory function here so the environment above is in effect.
    from main import create_app

    return create_app()


@pytest.fixture(autouse=True)
def reset_database() -> None:
    """Drop and recreate all tables before each test."""
    from app.db import reset_db

    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(reset_db())
    finally:
        loop.close()


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Fixture to get a test client for making API requests.
    The TestClient handles the application's lifespan events (startup/shutdown).
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client: TestClient) -> Callable[..., dict[str, Any]]:
    """
    Factory registering an account. Returns the user document with the bearer
    token under ``token`` and ready-made request headers under ``headers``.
    """

    def _register(name: str, email: str, role: str = "user") -> dict[str, Any]:
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": PASSWORD, "role": role},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        user = dict(data["user"])
        user["token"] = data["token"]
        user["headers"] = auth_headers(data["token"])
        return user

    return _register


@pytest.fixture
def admin(register) -> dict[str, Any]:
    return register("Ada Admin", "admin@example.com", role="admin")


@pytest.fixture
def alice(register) -> dict[str, Any]:
    return register("Alice", "alice@example.com")


@pytest.fixture
def bob(register) -> dict[str, Any]:
    return register("Bob", "bob@example.com")


@pytest.fixture
def create_task(client: TestClient, admin) -> Callable[..., dict[str, Any]]:
    """Factory creating a task as the admin and returning the task document."""

    def _create(assigned_to: str, **overrides: Any) -> dict[str, Any]:
        response = client.post(
            "/api/tasks",
            json=task_payload(assigned_to, **overrides),
            headers=admin["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
