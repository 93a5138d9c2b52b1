"""HITL task API: list, read and act on a tenant's tasks."""

from typing import Annotated

from fastapi import APIRouter, Query, Request

from switchboard.api.v1.dependencies import Container, CurrentTenant
from switchboard.core.limiter import limit_task_action
from switchboard.domain.enums import TaskState
from switchboard.schemas.task import TaskActionRequest, TaskActionResponse, TaskResponse

router = APIRouter()


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    tenant: CurrentTenant,
    container: Container,
    state: TaskState | None = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
):
    """Tasks of the tenant, newest first; filter with ?state=pending."""
    tasks = await container.tasks.list_tasks(tenant.id, state, skip, limit)
    return [TaskResponse.from_entity(t) for t in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, tenant: CurrentTenant, container: Container):
    task = await container.tasks.get(task_id, tenant_id=tenant.id)
    return TaskResponse.from_entity(task)


@router.post("/{task_id}/actions", response_model=TaskActionResponse)
@limit_task_action
async def perform_task_action(
    request: Request,
    task_id: str,
    body: TaskActionRequest,
    tenant: CurrentTenant,
    container: Container,
):
    """Complete a pending task with one of its actions.

    400 for an action outside the task's set, 409 once the task is terminal.
    """
    result = await container.tasks.perform_action(
        task_id, body.action, body.comment, tenant_id=tenant.id
    )
    return TaskActionResponse.from_result(result)
