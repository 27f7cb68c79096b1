"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import common_router, tasks_router
from api.services.app_initializer import AppServiceInitializer
from core import get_logger, setup_logging
from core.config import load_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = load_settings()
    app.state.settings = settings
    setup_logging(
        level=settings.log_level,
        enable_file_logging=settings.log_to_file,
    )
    logger.info(f"Starting BulkTask API server in {settings.environment} mode")

    initializer = AppServiceInitializer(settings)
    await initializer.initialize_all_services(app)
    try:
        await initializer.start_all_services()
    except Exception as e:
        logger.error(f"Failed to start task worker: {e}")

    logger.info("BulkTask API server initialized successfully")

    yield

    try:
        await initializer.stop_all_services()
    except Exception as e:
        logger.error(f"Error stopping background services: {e}")

    logger.info("BulkTask API server shutting down")


def create_app() -> FastAPI:
    """Create FastAPI app with current settings."""
    settings = load_settings()

    app = FastAPI(
        title=settings.api_title,
        description="Background bulk task processing API",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(common_router)
    app.include_router(tasks_router)
    return app


app = create_app()
