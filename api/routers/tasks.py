"""Background task router."""

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_task_service
from api.utils.error_handler import handle_async_api_operation
from core.models import (
    BulkAccountTaskRequest,
    ProcessingStatusResponse,
    TaskActionResponse,
    TaskCreatedResponse,
    TaskCreateRequest,
    TaskDetailResponse,
    TaskListResponse,
)
from core.services.task_service import BackgroundTaskService
from core.types import TaskType

router = APIRouter(prefix="/v1/tasks", tags=["tasks"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    request: TaskCreateRequest,
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskCreatedResponse:
    """Queue a background task of any registered type."""

    async def create() -> str:
        return await service.create_task(
            task_type=request.task_type,
            title=request.title,
            description=request.description,
            input_data=request.input_data,
            branch_id=request.branch_id,
            created_by=request.created_by,
            priority=request.priority,
        )

    task_id = await handle_async_api_operation(create, "Failed to create task")
    return TaskCreatedResponse(task_id=task_id)


@router.post("/bulk-accounts", status_code=status.HTTP_201_CREATED)
async def create_bulk_account_task(
    request: BulkAccountTaskRequest,
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskCreatedResponse:
    """Queue a bulk account creation task."""

    async def create() -> str:
        return await service.create_task(
            task_type=TaskType.BULK_ACCOUNT_CREATION.value,
            title=request.title,
            description=request.description,
            input_data={
                "kind": request.kind.value,
                "items": request.items,
                "branch_id": request.branch_id,
            },
            branch_id=request.branch_id,
            created_by=request.created_by,
            priority=request.priority,
        )

    task_id = await handle_async_api_operation(
        create, "Failed to create bulk account task"
    )
    return TaskCreatedResponse(task_id=task_id)


@router.get("")
async def list_tasks(
    branch_id: str | None = Query(default=None, description="Tenant scope"),
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskListResponse:
    """List recent tasks, newest first."""
    return await handle_async_api_operation(
        lambda: service.get_all_tasks(branch_id=branch_id), "Failed to list tasks"
    )


# Registered before /{task_id} so "processing" is not taken as an id
@router.get("/processing/status")
async def get_processing_status(
    service: BackgroundTaskService = Depends(get_task_service),
) -> ProcessingStatusResponse:
    """Get the worker loop state."""
    processing = await service.get_processing_status()
    return ProcessingStatusResponse(**processing.model_dump())


@router.post("/processing/restart")
async def restart_processing(
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskActionResponse:
    """Start the worker loop if it is not running."""
    started = await handle_async_api_operation(
        service.restart_processing, "Failed to restart processing"
    )
    if started:
        return TaskActionResponse(message="Task processing started")
    return TaskActionResponse(message="Task processing already running")


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    """Get a task and its most recent execution log entries."""
    return await handle_async_api_operation(
        lambda: service.get_task_status(task_id), f"Failed to get task {task_id}"
    )


@router.post("/{task_id}/pause")
async def pause_task(
    task_id: str,
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskActionResponse:
    """Pause a pending or running task."""
    await handle_async_api_operation(
        lambda: service.pause_task(task_id), f"Failed to pause task {task_id}"
    )
    return TaskActionResponse(task_id=task_id, message="Task paused")


@router.post("/{task_id}/resume")
async def resume_task(
    task_id: str,
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskActionResponse:
    """Return a paused task to the queue."""
    await handle_async_api_operation(
        lambda: service.resume_task(task_id), f"Failed to resume task {task_id}"
    )
    return TaskActionResponse(task_id=task_id, message="Task resumed")


@router.post("/{task_id}/cancel")
async def cancel_task(
    task_id: str,
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskActionResponse:
    """Cancel a task that has not finished."""
    await handle_async_api_operation(
        lambda: service.cancel_task(task_id), f"Failed to cancel task {task_id}"
    )
    return TaskActionResponse(task_id=task_id, message="Task cancelled")


@router.post("/{task_id}/requeue")
async def requeue_task(
    task_id: str,
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskActionResponse:
    """Queue a failed task for another run."""
    await handle_async_api_operation(
        lambda: service.requeue_task(task_id), f"Failed to requeue task {task_id}"
    )
    return TaskActionResponse(task_id=task_id, message="Task re-queued")


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    service: BackgroundTaskService = Depends(get_task_service),
) -> TaskActionResponse:
    """Delete a finished task and its execution log."""
    await handle_async_api_operation(
        lambda: service.delete_task(task_id), f"Failed to delete task {task_id}"
    )
    return TaskActionResponse(task_id=task_id, message="Task deleted")
