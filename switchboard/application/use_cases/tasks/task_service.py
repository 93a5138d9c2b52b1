"""HITL task service: durable wait plus the participant notification that carries its hint."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from switchboard.application.context import WorkflowContext
from switchboard.application.dtos.task import TaskCreate, WaitHandle, WaitResult
from switchboard.application.use_cases.tasks.wait_coordinator import DurableWaitCoordinator
from switchboard.domain.entities.message import MessageEntity
from switchboard.domain.entities.task import TaskEntity
from switchboard.domain.enums import TaskState
from switchboard.domain.value_objects.core import DEFAULT_TASK_ACTIONS
from switchboard.shared.telemetry.logging import get_logger
from switchboard.shared.utils.generators import generate_task_id

if TYPE_CHECKING:
    from switchboard.application.use_cases.delivery.router import DeliveryRouter

logger = get_logger(__name__)


class TaskService:
    """Creates HITL tasks and links them into the conversation.

    The notification message goes to the task's participant in the caller's
    scope with hint = task id, so get_last_hint() in that (thread, scope)
    names the task.
    """

    def __init__(self, coordinator: DurableWaitCoordinator, router: DeliveryRouter) -> None:
        self.coordinator = coordinator
        self.router = router

    async def create_task(
        self,
        context: WorkflowContext,
        *,
        title: str,
        description: str | None = None,
        draft_work: Any = None,
        actions: tuple[str, ...] | None = None,
        timeout_seconds: float | None = None,
        survive_parent_close: bool = False,
        participant_id: str | None = None,
        scope: str | None = None,
        task_id: str | None = None,
        notify: bool = True,
    ) -> tuple[WaitHandle, MessageEntity | None]:
        """Start the wait and, when there is a participant, send its notification.

        participant_id and scope default to the context's. Returns the handle
        and the notification message (None when nobody was notified).
        """
        participant = participant_id or context.participant_id
        scope = scope if scope is not None else context.scope
        handle = await self.coordinator.start(
            TaskCreate(
                id=task_id or generate_task_id(),
                tenant_id=context.tenant_id,
                title=title,
                actions=tuple(actions) if actions else DEFAULT_TASK_ACTIONS,
                timeout_seconds=timeout_seconds,
                description=description,
                workflow_id=context.workflow_type,
                parent_instance_id=context.instance_id,
                participant_id=participant,
                thread_id=context.thread_id,
                scope=scope,
                draft_work=draft_work,
                survive_parent_close=survive_parent_close,
            )
        )
        if not notify or not participant:
            return handle, None

        actions_list = list(actions) if actions else list(DEFAULT_TASK_ACTIONS)
        notification = await self.router.send_proactive(
            context,
            participant,
            title,
            {
                "taskId": handle.correlation_id,
                "title": title,
                "description": description,
                "draftWork": draft_work,
                "actions": actions_list,
                "timeoutSeconds": timeout_seconds,
            },
            scope,
            hint=handle.correlation_id,
        )
        return handle, notification

    async def exists(self, task_id: str, *, tenant_id: str | None = None) -> bool:
        """Check-before-create support for idempotent task creation."""
        return await self.coordinator.exists(task_id, tenant_id=tenant_id)

    async def get(self, task_id: str, *, tenant_id: str | None = None) -> TaskEntity:
        return await self.coordinator.get(task_id, tenant_id=tenant_id)

    async def list_tasks(
        self, tenant_id: str, state: TaskState | None = None, skip: int = 0, limit: int = 100
    ) -> list[TaskEntity]:
        async with self.coordinator.provider.transaction(tenant_id) as repos:
            return await repos.tasks.list_by_tenant(tenant_id, state, skip, limit)

    async def perform_action(
        self, task_id: str, action: str, comment: str | None = None, *, tenant_id: str | None = None
    ) -> WaitResult:
        result = await self.coordinator.perform_action(task_id, action, comment, tenant_id=tenant_id)
        logger.info("Task %s completed with action %s", task_id, action)
        return result

    async def get_result(self, handle: WaitHandle) -> WaitResult:
        return await self.coordinator.await_result(handle)
