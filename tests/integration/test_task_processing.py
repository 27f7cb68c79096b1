"""End-to-end task processing against mock collaborators."""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.services.app_initializer import AppServiceInitializer
from core.types import BackgroundTaskStatus, TaskType

from tests.utils.collaborators import MockCollaborators
from tests.utils.test_helpers import make_people

CREATION = TaskType.BULK_ACCOUNT_CREATION.value


async def wait_for_status(
    initializer: AppServiceInitializer,
    task_id: str,
    status: BackgroundTaskStatus,
    timeout: float = 5.0,
) -> None:
    async def poll() -> None:
        while initializer.state_manager.get_status(task_id) != status:
            await asyncio.sleep(0.02)

    await asyncio.wait_for(poll(), timeout=timeout)


@pytest.mark.asyncio
async def test_bulk_accounts_via_api(
    integration_app: tuple[FastAPI, AppServiceInitializer],
    collaborators: MockCollaborators,
) -> None:
    """5 people with one rejected email: the task completes with one failure."""
    app, initializer = integration_app
    client = TestClient(app)

    response = client.post(
        "/v1/tasks/bulk-accounts",
        json={
            "kind": "student",
            "title": "Import students",
            "items": make_people(5),
            "branch_id": "north",
        },
    )
    assert response.status_code == 201
    task_id = response.json()["task_id"]

    status = await initializer.scheduler.process_task(task_id)
    assert status == BackgroundTaskStatus.COMPLETED

    data = client.get(f"/v1/tasks/{task_id}").json()
    task = data["task"]
    assert task["status"] == "COMPLETED"
    assert task["processed_items"] == 5
    assert task["failed_items"] == 1
    assert task["percentage"] == 100
    assert task["errors"] == [
        "Failed to create student Person2 Test: Email already registered"
    ]
    assert len(task["results"]["processed_items"]) == 4
    assert len(data["execution_logs"]) == 10

    assert len(collaborators.accounts) == 4
    assert {a["scope"] for a in collaborators.accounts} == {"north"}
    assert all(r["externalId"].startswith("ext-") for r in collaborators.records)

    assert len(collaborators.webhooks) == 1
    assert collaborators.webhooks[0]["status"] == "COMPLETED"
    assert collaborators.webhooks[0]["failed_items"] == 1


@pytest.mark.asyncio
async def test_pause_resume_preserves_queue_order(
    integration_app: tuple[FastAPI, AppServiceInitializer],
) -> None:
    _, initializer = integration_app
    service = initializer.task_service
    payload = {"kind": "student", "items": make_people(1)}

    first = await service.create_task(CREATION, "First", None, dict(payload))
    second = await service.create_task(CREATION, "Second", None, dict(payload))

    await service.pause_task(first)
    assert initializer.state_manager.find_next_eligible().id == second

    await service.resume_task(first)
    assert initializer.state_manager.get_status(first) == BackgroundTaskStatus.PENDING
    assert initializer.state_manager.find_next_eligible().id == first

    initializer.scheduler.start_processing()
    await wait_for_status(initializer, second, BackgroundTaskStatus.COMPLETED)

    first_task = initializer.state_manager.require_task(first)
    second_task = initializer.state_manager.require_task(second)
    assert first_task.status == BackgroundTaskStatus.COMPLETED
    assert first_task.completed_at <= second_task.started_at


@pytest.mark.asyncio
async def test_requeued_task_resumes_after_processed_items(
    integration_app: tuple[FastAPI, AppServiceInitializer],
    collaborators: MockCollaborators,
) -> None:
    _, initializer = integration_app
    service = initializer.task_service
    state_manager = initializer.state_manager

    task_id = await service.create_task(
        CREATION, "Import", None, {"kind": "student", "items": make_people(4)}
    )
    # A previous run stopped after two items
    state_manager.update_task(
        task_id,
        status=BackgroundTaskStatus.FAILED,
        processed_items=2,
        failed_items=0,
        percentage=50,
        results={
            "success": 2,
            "failed": 0,
            "errors": [],
            "processed_items": [{"id": "rec-a"}, {"id": "rec-b"}],
        },
    )

    await service.requeue_task(task_id)
    assert state_manager.get_status(task_id) == BackgroundTaskStatus.RETRY

    status = await initializer.scheduler.process_task(task_id)

    assert status == BackgroundTaskStatus.COMPLETED
    task = state_manager.require_task(task_id)
    assert task.processed_items == 4
    assert task.failed_items == 0
    assert task.results["success"] == 4
    assert len(task.results["processed_items"]) == 4
    assert [a["email"] for a in collaborators.accounts] == [
        "person3@example.com",
        "person4@example.com",
    ]


@pytest.mark.asyncio
async def test_cancel_pending_task_is_never_run(
    integration_app: tuple[FastAPI, AppServiceInitializer],
    collaborators: MockCollaborators,
) -> None:
    _, initializer = integration_app
    service = initializer.task_service

    task_id = await service.create_task(
        CREATION, "Import", None, {"kind": "student", "items": make_people(2)}
    )
    await service.cancel_task(task_id)

    assert initializer.state_manager.find_next_eligible() is None
    assert await initializer.scheduler.process_task(task_id) is None
    assert collaborators.accounts == []

    await service.delete_task(task_id)
    assert initializer.state_manager.get_task(task_id) is None
