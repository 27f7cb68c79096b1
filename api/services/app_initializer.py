"""Application service initializer for managing startup and shutdown."""

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from core.batch.execution_logger import TaskExecutionLogger
from core.batch.item_processor import BatchItemProcessor
from core.batch.registry import ItemProcessorRegistry
from core.batch.state_manager import TaskStateManager
from core.batch.strategies import register_default_strategies
from core.batch.task_scheduler import TaskScheduler
from core.config import Settings
from core.database.engine import create_database_engine, create_database_tables
from core.log import get_logger
from core.notifications import NotificationDispatcher
from core.provisioning import (
    DomainRecordClient,
    IdentityProvisioningClient,
    register_account_handlers,
)
from core.services.task_service import BackgroundTaskService

logger = get_logger(__name__)


class AppServiceInitializer:
    """Manages initialization and lifecycle of application services."""

    def __init__(self, settings: Settings):
        """Initialize with application settings."""
        self.settings = settings
        self.engine: Engine | None = None
        self.state_manager: TaskStateManager | None = None
        self.execution_logger: TaskExecutionLogger | None = None
        self.registry: ItemProcessorRegistry | None = None
        self.dispatcher: NotificationDispatcher | None = None
        self.scheduler: TaskScheduler | None = None
        self.task_service: BackgroundTaskService | None = None
        self.identity_client: IdentityProvisioningClient | None = None
        self.records_client: DomainRecordClient | None = None

    async def initialize_all_services(
        self,
        app: FastAPI,
        engine: Engine | None = None,
    ) -> None:
        """Initialize all services and configure app.state."""
        logger.info("Initializing all application services...")

        await self.initialize_database(engine)
        await self.initialize_task_services()
        await self.initialize_provisioning_services()
        self._setup_app_state(app)

        logger.info("All application services initialized successfully")

    async def initialize_database(self, engine: Engine | None = None) -> None:
        """Initialize database engine and create tables."""
        logger.info("Initializing database...")

        if engine:
            self.engine = engine
        else:
            self.engine = create_database_engine(
                self.settings.environment, db_path=self.settings.database_path
            )

        create_database_tables(self.engine)

        logger.info("Database initialized successfully")

    async def initialize_task_services(self) -> None:
        """Initialize the task store, worker loop and control service."""
        if not self.engine:
            raise RuntimeError("Database must be initialized before task services")

        settings = self.settings
        self.state_manager = TaskStateManager(self.engine)
        self.execution_logger = TaskExecutionLogger(self.state_manager)
        self.registry = ItemProcessorRegistry()

        item_processor = BatchItemProcessor(
            self.state_manager,
            self.execution_logger,
            batch_size=settings.batch_size,
            item_delay=settings.item_delay,
            batch_delay=settings.batch_delay,
        )
        register_default_strategies(self.registry, item_processor)

        self.dispatcher = NotificationDispatcher.from_settings(
            settings, self.state_manager
        )
        self.scheduler = TaskScheduler(
            self.state_manager,
            self.registry,
            self.execution_logger,
            self.dispatcher,
            idle_poll_interval=settings.idle_poll_interval,
            inter_task_delay=settings.inter_task_delay,
        )
        self.task_service = BackgroundTaskService(
            self.state_manager,
            self.scheduler,
            self.execution_logger,
            autostart=settings.worker_autostart,
            status_log_limit=settings.status_log_limit,
            task_list_limit=settings.task_list_limit,
        )

    async def initialize_provisioning_services(self) -> None:
        """Register the bulk account handlers when collaborators are configured."""
        if not self.registry:
            raise RuntimeError("Task services must be initialized before provisioning")

        if not self.settings.provisioning_enabled:
            logger.warning(
                "Provisioning collaborators are not configured; "
                "bulk account tasks will fail"
            )
            return

        self.identity_client = IdentityProvisioningClient(
            self.settings.identity_api_base_url, timeout=self.settings.http_timeout
        )
        self.records_client = DomainRecordClient(
            self.settings.records_api_base_url, timeout=self.settings.http_timeout
        )
        register_account_handlers(
            self.registry, self.identity_client, self.records_client
        )

    async def start_all_services(self) -> None:
        """Start the worker loop when autostart is enabled."""
        if not self.scheduler:
            raise RuntimeError("Task services must be initialized before starting")

        if self.settings.worker_autostart:
            self.scheduler.start_processing()
        else:
            logger.info("Worker autostart disabled")

    async def stop_all_services(self) -> None:
        """Stop the worker loop and close collaborator clients."""
        logger.info("Stopping all background services...")

        if self.scheduler:
            await self.scheduler.shutdown()

        for client in (self.identity_client, self.records_client):
            if client:
                await client.aclose()

        logger.info("All background services stopped successfully")

    def _setup_app_state(self, app: FastAPI) -> None:
        """Configure app.state with initialized services."""
        app.state.engine = self.engine
        app.state.state_manager = self.state_manager
        app.state.registry = self.registry
        app.state.scheduler = self.scheduler
        app.state.task_service = self.task_service
