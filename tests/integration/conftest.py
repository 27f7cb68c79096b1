"""Common fixtures for integration tests."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from pytest_httpserver import HTTPServer
from sqlalchemy.engine import Engine

from api.app import create_app
from api.services.app_initializer import AppServiceInitializer
from core.config import load_settings
from core.log import get_logger

from tests.utils.collaborators import MockCollaborators

logger = get_logger(__name__)


@pytest.fixture
def collaborators(httpserver: HTTPServer) -> MockCollaborators:
    mock = MockCollaborators(httpserver)
    mock.install()
    return mock


@pytest_asyncio.fixture
async def integration_app(
    monkeypatch: pytest.MonkeyPatch,
    mock_db_engine: Engine,
    httpserver: HTTPServer,
    collaborators: MockCollaborators,
) -> AsyncGenerator[tuple[FastAPI, AppServiceInitializer], None]:
    """Create an app wired by AppServiceInitializer against mock collaborators."""
    monkeypatch.setenv("BULKTASK_ENV", "testing")
    monkeypatch.setenv("BULKTASK_IDENTITY_API_BASE_URL", httpserver.url_for("/"))
    monkeypatch.setenv("BULKTASK_RECORDS_API_BASE_URL", httpserver.url_for("/"))
    monkeypatch.setenv(
        "BULKTASK_NOTIFICATION_WEBHOOK_URL", httpserver.url_for("/hooks/tasks")
    )
    monkeypatch.setenv("BULKTASK_BATCH_SIZE", "2")
    monkeypatch.setenv("BULKTASK_ITEM_DELAY", "0")
    monkeypatch.setenv("BULKTASK_BATCH_DELAY", "0")
    monkeypatch.setenv("BULKTASK_INTER_TASK_DELAY", "0")
    monkeypatch.setenv("BULKTASK_IDLE_POLL_INTERVAL", "0.05")

    app = create_app()
    settings = load_settings()
    app.state.settings = settings

    initializer = AppServiceInitializer(settings)
    await initializer.initialize_all_services(app=app, engine=mock_db_engine)

    yield app, initializer

    await initializer.stop_all_services()
