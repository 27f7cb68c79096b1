"""API routers package."""

from .common import router as common_router
from .tasks import router as tasks_router

__all__ = [
    "common_router",
    "tasks_router",
]
