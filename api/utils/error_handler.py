"""Error handling utilities for API endpoints."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from fastapi import HTTPException, status

from core.exceptions import (
    InvalidStateTransitionError,
    TaskError,
    TaskNotFoundError,
)
from core.log import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def to_http_exception(error: Exception, error_message: str) -> HTTPException:
    """Map a task error to the HTTP status it stands for."""
    if isinstance(error, TaskNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, InvalidStateTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, (TaskError, ValueError)):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)
        )

    logger.error(f"{error_message}: {error}", exc_info=error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{error_message}: {str(error)}",
    )


async def handle_async_api_operation(
    operation: Callable[[], Awaitable[T]],
    error_message: str = "Operation failed",
) -> T:
    """Handle async API operations with consistent error handling."""
    try:
        return await operation()
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, error_message) from e
