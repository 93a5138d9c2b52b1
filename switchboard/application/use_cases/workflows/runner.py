"""Workflow runner: custom workflow instances as asyncio tasks."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass, replace
from typing import Any

from switchboard.application.context import WorkflowContext
from switchboard.application.dtos.message import ReceiveResult
from switchboard.application.dtos.task import WaitHandle, WaitResult
from switchboard.application.services.workflow_registry import WorkflowRegistry
from switchboard.application.use_cases.delivery.a2a import A2AClient
from switchboard.application.use_cases.delivery.router import DeliveryRouter
from switchboard.application.use_cases.tasks.task_service import TaskService
from switchboard.application.use_cases.tasks.wait_coordinator import DurableWaitCoordinator
from switchboard.domain.entities.message import MessageEntity
from switchboard.domain.enums import WorkflowKind
from switchboard.domain.exceptions import ValidationException, WorkflowNotFoundError
from switchboard.shared.telemetry.logging import get_logger
from switchboard.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


@dataclass(frozen=True)
class WorkflowHandle:
    """Detached reference to a started workflow instance; carries no result."""

    instance_id: str
    workflow_type: str
    tenant_id: str


class RunContext:
    """What a custom workflow's run(ctx, input) sees."""

    def __init__(
        self,
        context: WorkflowContext,
        router: DeliveryRouter,
        tasks: TaskService,
        a2a: A2AClient,
    ) -> None:
        self.context = context
        self.router = router
        self.tasks = tasks
        self.a2a = a2a

    @property
    def tenant_id(self) -> str:
        return self.context.tenant_id

    @property
    def instance_id(self) -> str | None:
        return self.context.instance_id

    async def send_chat(
        self,
        participant_id: str,
        text: str,
        data: Any = None,
        scope: str | None = None,
        *,
        hint: str | None = None,
    ) -> MessageEntity:
        return await self.router.send_proactive(self.context, participant_id, text, data, scope, hint=hint)

    async def send_data(self, participant_id: str, data: Any, scope: str | None = None) -> MessageEntity:
        return await self.router.send_proactive(self.context, participant_id, None, data, scope)

    async def send_as(
        self,
        workflow_name: str,
        participant_id: str,
        text: str,
        data: Any = None,
        scope: str | None = None,
    ) -> MessageEntity:
        """Send into the thread of a built-in workflow of this agent."""
        return await self.router.send_as_workflow(
            self.context, workflow_name, participant_id, text, data, scope
        )

    async def create_task(
        self,
        participant_id: str,
        title: str,
        *,
        description: str | None = None,
        draft_work: Any = None,
        actions: tuple[str, ...] | None = None,
        timeout_seconds: float | None = None,
        survive_parent_close: bool = False,
        scope: str | None = None,
    ) -> WaitHandle:
        handle, _ = await self.tasks.create_task(
            self.context,
            title=title,
            description=description,
            draft_work=draft_work,
            actions=actions,
            timeout_seconds=timeout_seconds,
            survive_parent_close=survive_parent_close,
            participant_id=participant_id,
            scope=scope,
        )
        return handle

    async def await_task(self, handle: WaitHandle) -> WaitResult:
        return await self.tasks.get_result(handle)

    async def send_to_workflow(
        self,
        target: str,
        text: str,
        data: Any = None,
        *,
        participant_id: str | None = None,
        expect_reply: bool = True,
    ) -> ReceiveResult:
        ctx = self.context if participant_id is None else replace(self.context, participant_id=participant_id)
        return await self.a2a.send_chat(ctx, target, text, data, expect_reply=expect_reply)


class WorkflowRunner:
    """Starts custom workflows as cooperative asyncio tasks.

    start() is fire-and-forget and returns a WorkflowHandle; execute() awaits
    the workflow's return value. cancel() stops an instance and cancels the
    durable waits it owns.
    """

    def __init__(
        self,
        workflow_registry: WorkflowRegistry,
        router: DeliveryRouter,
        tasks: TaskService,
        coordinator: DurableWaitCoordinator,
        a2a: A2AClient,
    ) -> None:
        self.workflow_registry = workflow_registry
        self.router = router
        self.tasks = tasks
        self.coordinator = coordinator
        self.a2a = a2a
        self._running: dict[str, asyncio.Task[Any]] = {}

    def start(
        self,
        tenant_id: str,
        workflow_type: str,
        input: Any = None,
        *,
        participant_id: str | None = None,
        scope: str | None = None,
        instance_id: str | None = None,
    ) -> WorkflowHandle:
        """Start a custom workflow in the background."""
        ctx, coro = self._prepare(tenant_id, workflow_type, input, participant_id, scope, instance_id)
        self.spawn(coro, instance_id=ctx.instance_id)
        logger.info("Workflow %s started: instance=%s tenant=%s", workflow_type, ctx.instance_id, tenant_id)
        return WorkflowHandle(instance_id=ctx.instance_id, workflow_type=workflow_type, tenant_id=tenant_id)

    async def execute(
        self,
        tenant_id: str,
        workflow_type: str,
        input: Any = None,
        *,
        participant_id: str | None = None,
        scope: str | None = None,
        instance_id: str | None = None,
    ) -> Any:
        """Run a custom workflow and return its result."""
        ctx, coro = self._prepare(tenant_id, workflow_type, input, participant_id, scope, instance_id)
        task = self.spawn(coro, instance_id=ctx.instance_id)
        return await task

    def spawn(self, coro: Coroutine[Any, Any, Any], *, instance_id: str | None = None) -> asyncio.Task[Any]:
        """Track a background coroutine so it can be cancelled and is not garbage collected."""
        key = instance_id or generate_cuid()
        task = asyncio.create_task(coro, name=f"workflow:{key}")
        self._running[key] = task
        task.add_done_callback(lambda t, k=key: self._finished(k, t))
        return task

    async def cancel(self, instance_id: str) -> bool:
        """Cancel a running instance and the durable waits it owns."""
        task = self._running.get(instance_id)
        running = task is not None and not task.done()
        if running:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            logger.info("Workflow instance %s cancelled", instance_id)
        await self.coordinator.cancel_parent(instance_id)
        return running

    def is_running(self, instance_id: str) -> bool:
        task = self._running.get(instance_id)
        return task is not None and not task.done()

    async def shutdown(self) -> None:
        tasks = [t for t in self._running.values() if not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._running.clear()

    def _prepare(
        self,
        tenant_id: str,
        workflow_type: str,
        input: Any,
        participant_id: str | None,
        scope: str | None,
        instance_id: str | None,
    ) -> tuple[WorkflowContext, Coroutine[Any, Any, Any]]:
        workflow = self.workflow_registry.get_workflow(tenant_id, workflow_type)
        if workflow.kind is not WorkflowKind.CUSTOM or workflow.run is None:
            raise WorkflowNotFoundError(workflow_type, reason="is not a runnable custom workflow")
        instance_id = instance_id or f"{workflow_type}:{generate_cuid()}"
        if instance_id in self._running and not self._running[instance_id].done():
            raise ValidationException(f"Instance {instance_id} is already running", field="instance_id")
        ctx = WorkflowContext(
            tenant_id=tenant_id,
            workflow_type=workflow.workflow_type,
            participant_id=participant_id,
            scope=scope,
            instance_id=instance_id,
        )
        run_ctx = RunContext(ctx, self.router, self.tasks, self.a2a)
        return ctx, workflow.run(run_ctx, input)

    def _finished(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._running.get(key) is task:
            self._running.pop(key, None)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Workflow instance %s failed: %s", key, exc, exc_info=exc)
