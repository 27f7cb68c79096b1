"""Global pytest configuration and fixtures."""

from collections.abc import Generator
from logging import Logger
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlmodel import Session

from core import setup_test_logging
from core.batch.execution_logger import TaskExecutionLogger
from core.batch.item_processor import BatchItemProcessor
from core.batch.registry import ItemProcessorRegistry
from core.batch.state_manager import TaskStateManager
from core.batch.strategies import register_default_strategies
from core.batch.task_scheduler import TaskScheduler
from core.database.engine import create_database_tables
from core.database.repository import TaskExecutionLogRepository, TaskRepository
from core.notifications import NotificationDispatcher
from core.services.task_service import BackgroundTaskService

from tests.utils.test_helpers import RecordingChannel


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Setup test logging for all tests."""
    setup_test_logging()


@pytest.fixture(scope="function")
def logger() -> Logger:
    """Provide a logger instance for tests."""
    from core import get_logger

    return get_logger("test")


@pytest.fixture
def mock_db_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Create a real database engine for testing using a file-based database."""
    db_path = tmp_path / "test.db"
    database_url = f"sqlite:///{db_path}"

    engine = create_engine(
        database_url,
        echo=False,
        connect_args={
            "check_same_thread": False,
            "timeout": 60.0,
        },
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
    )
    create_database_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def mock_db_session(mock_db_engine: Engine) -> Generator[Session, None, None]:
    with Session(mock_db_engine) as session:
        yield session


@pytest.fixture
def task_repo(mock_db_session: Session) -> TaskRepository:
    """Get task repository."""
    return TaskRepository(mock_db_session)


@pytest.fixture
def task_log_repo(mock_db_session: Session) -> TaskExecutionLogRepository:
    """Get task execution log repository."""
    return TaskExecutionLogRepository(mock_db_session)


@pytest.fixture
def state_manager(mock_db_engine: Engine) -> TaskStateManager:
    return TaskStateManager(mock_db_engine)


@pytest.fixture
def execution_logger(state_manager: TaskStateManager) -> TaskExecutionLogger:
    return TaskExecutionLogger(state_manager)


@pytest.fixture
def item_processor(
    state_manager: TaskStateManager, execution_logger: TaskExecutionLogger
) -> BatchItemProcessor:
    """Item processor without delays."""
    return BatchItemProcessor(
        state_manager,
        execution_logger,
        batch_size=2,
        item_delay=0,
        batch_delay=0,
    )


@pytest.fixture
def registry(item_processor: BatchItemProcessor) -> ItemProcessorRegistry:
    """Registry with the built-in strategies and no item handlers."""
    registry = ItemProcessorRegistry()
    register_default_strategies(registry, item_processor)
    return registry


@pytest.fixture
def recording_channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def dispatcher(
    state_manager: TaskStateManager, recording_channel: RecordingChannel
) -> NotificationDispatcher:
    return NotificationDispatcher(state_manager, channels=[recording_channel])


@pytest.fixture
def scheduler(
    state_manager: TaskStateManager,
    registry: ItemProcessorRegistry,
    execution_logger: TaskExecutionLogger,
    dispatcher: NotificationDispatcher,
) -> TaskScheduler:
    """Scheduler with short idle and inter-task waits."""
    return TaskScheduler(
        state_manager,
        registry,
        execution_logger,
        dispatcher,
        idle_poll_interval=0.05,
        inter_task_delay=0,
    )


@pytest.fixture
def task_service(
    state_manager: TaskStateManager,
    scheduler: TaskScheduler,
    execution_logger: TaskExecutionLogger,
) -> BackgroundTaskService:
    """Service that does not start the worker on its own."""
    return BackgroundTaskService(
        state_manager, scheduler, execution_logger, autostart=False
    )
