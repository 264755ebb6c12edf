"""
Pytest configuration and shared fixtures.
"""

import asyncio
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from taskboard.api.main import create_app
from taskboard.config import LoggingSettings, Settings
from taskboard.models import Task, TaskCreateRequest
from taskboard.service import TaskService
from taskboard.store import TaskStore


@pytest.fixture
def settings() -> Settings:
    """Settings for an in-memory test service."""
    return Settings(
        environment="testing",
        logging=LoggingSettings(level="WARNING"),
    )


@pytest.fixture
def store() -> TaskStore:
    """Empty in-memory task store."""
    return TaskStore()


@pytest.fixture
def service(store: TaskStore) -> TaskService:
    return TaskService(store)


@pytest.fixture
def make_task(service: TaskService):
    """Create a task through the service and return it."""

    def _make(title: str, description: str = "Something to do", **extra: Any) -> Task:
        request = TaskCreateRequest(title=title, description=description, **extra)
        return asyncio.run(service.create_task(request))

    return _make


@pytest.fixture
def app(settings: Settings, store: TaskStore):
    return create_app(settings, store)


@pytest.fixture
def api_client(app) -> Generator[TestClient, None, None]:
    """Test client bound to the app and its store."""
    with TestClient(app) as client:
        yield client


# Pytest configuration
def pytest_collection_modifyitems(config: Any, items: list[Any]) -> None:
    """Add markers based on file location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "api" in path:
            item.add_marker(pytest.mark.api)
        elif "cli" in path:
            item.add_marker(pytest.mark.cli)
