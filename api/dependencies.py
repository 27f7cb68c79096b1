"""FastAPI dependencies resolved from app state."""

from fastapi import Request
from sqlalchemy.engine import Engine

from core.batch.task_scheduler import TaskScheduler
from core.config import Settings
from core.log import get_logger
from core.services.task_service import BackgroundTaskService

logger = get_logger(__name__)


def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_engine(request: Request) -> Engine:
    """Get database engine from app state."""
    engine: Engine = request.app.state.engine
    return engine


def get_task_service(request: Request) -> BackgroundTaskService:
    """Get background task service from app state."""
    service: BackgroundTaskService = request.app.state.task_service
    return service


def get_scheduler(request: Request) -> TaskScheduler:
    """Get task scheduler from app state."""
    scheduler: TaskScheduler = request.app.state.scheduler
    return scheduler
