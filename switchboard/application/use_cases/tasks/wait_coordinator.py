"""Durable wait coordinator: persisted waits resolved by action, timeout or cancellation.

Architecture:
    start()          -> persist PENDING task, arm timeout timer
    await_result()   -> read persisted state, else await a shared Future
    perform_action() -> compare-and-set PENDING -> COMPLETED_BY_ACTION, wake waiters
    timer / expire() -> compare-and-set PENDING -> COMPLETED_BY_TIMEOUT, wake waiters
    cancel_parent()  -> abandon non-surviving tasks, fail waiters with CancellationError
    recover()        -> on startup, re-arm timers from persisted deadlines
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime

from switchboard.application.dtos.events import ConversationEvent
from switchboard.application.dtos.task import TaskCreate, WaitHandle, WaitResult
from switchboard.application.interfaces.repositories import IRepositoryProvider
from switchboard.application.interfaces.services import IConversationEventPublisher
from switchboard.core.constants import EVENT_TASK_COMPLETED
from switchboard.domain.entities.message import MessageEntity
from switchboard.domain.entities.task import TaskEntity
from switchboard.domain.enums import TaskState
from switchboard.domain.exceptions import (
    AlreadyCompletedError,
    CancellationError,
    ResourceNotFoundException,
)
from switchboard.shared.telemetry.logging import get_logger
from switchboard.shared.telemetry.tracing import add_span_event, traced
from switchboard.shared.utils.datetime import deadline_after, seconds_until, utc_now

logger = get_logger(__name__)


def to_wait_result(task: TaskEntity) -> WaitResult:
    return WaitResult(
        correlation_id=task.id,
        state=task.state,
        performed_action=task.performed_action,
        comment=task.comment,
        timed_out=task.timed_out,
    )


class DurableWaitCoordinator:
    """Owns the timers and in-process waiters of durable waits.

    The persisted task row is the source of truth. Waiters share one Future
    per correlation id; it is resolved only after a transition has been
    committed, so a waiter never observes a state that lost the race.
    """

    def __init__(
        self,
        provider: IRepositoryProvider,
        *,
        publisher: IConversationEventPublisher | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.provider = provider
        self.publisher = publisher
        self.clock = clock
        self._waiters: dict[str, asyncio.Future[WaitResult]] = {}
        self._timers: dict[str, asyncio.Task[None]] = {}

    @traced("wait_coordinator.start")
    async def start(self, data: TaskCreate) -> WaitHandle:
        """Persist a PENDING wait and arm its timeout."""
        now = self.clock()
        task = TaskEntity(
            id=data.id,
            tenant_id=data.tenant_id,
            title=data.title,
            state=TaskState.PENDING,
            created_at=now,
            actions=tuple(data.actions),
            description=data.description,
            workflow_id=data.workflow_id,
            parent_instance_id=data.parent_instance_id,
            participant_id=data.participant_id,
            thread_id=data.thread_id,
            scope=data.scope,
            draft_work=data.draft_work,
            timeout_seconds=data.timeout_seconds,
            deadline_at=deadline_after(data.timeout_seconds, now),
            survive_parent_close=data.survive_parent_close,
            metadata=dict(data.metadata),
        )
        async with self.provider.transaction(task.tenant_id) as repos:
            await repos.tasks.create(task)
        if task.deadline_at is not None:
            self._arm(task.id, task.tenant_id, seconds_until(task.deadline_at, now))
        logger.info(
            "Wait started: task=%s tenant=%s actions=%s timeout=%s",
            task.id,
            task.tenant_id,
            ",".join(task.actions),
            task.timeout_seconds,
        )
        return self._handle(task)

    async def get(self, correlation_id: str, *, tenant_id: str | None = None) -> TaskEntity:
        async with self.provider.transaction(tenant_id) as repos:
            task = await repos.tasks.get_by_id(correlation_id)
        if task is None or (tenant_id is not None and task.tenant_id != tenant_id):
            raise ResourceNotFoundException("task", correlation_id)
        return task

    async def exists(self, correlation_id: str, *, tenant_id: str | None = None) -> bool:
        try:
            await self.get(correlation_id, tenant_id=tenant_id)
        except ResourceNotFoundException:
            return False
        return True

    @traced("wait_coordinator.perform_action")
    async def perform_action(
        self,
        correlation_id: str,
        action: str,
        comment: str | None = None,
        *,
        tenant_id: str | None = None,
    ) -> WaitResult:
        """Complete a wait with an allowed action.

        Raises:
            ResourceNotFoundException: unknown task, or a task of another tenant.
            InvalidActionError: action not in the task's action set.
            AlreadyCompletedError: task is terminal, including a lost race with its timeout.
        """
        async with self.provider.transaction(tenant_id) as repos:
            task = await repos.tasks.get_by_id(correlation_id)
            if task is None or (tenant_id is not None and task.tenant_id != tenant_id):
                raise ResourceNotFoundException("task", correlation_id)
            completed = task.perform(action, comment, self.clock())
            won = await repos.tasks.transition(completed)
        if not won:
            current = await self.get(correlation_id)
            raise AlreadyCompletedError(correlation_id, current.state.value)
        await self._settle(completed)
        return to_wait_result(completed)

    async def expire(self, correlation_id: str, *, tenant_id: str | None = None) -> bool:
        """Fire the timeout now. False when the wait was already terminal."""
        async with self.provider.transaction(tenant_id) as repos:
            task = await repos.tasks.get_by_id(correlation_id)
            if task is None or task.is_terminal:
                return False
            expired = task.expire(self.clock())
            won = await repos.tasks.transition(expired)
        if not won:
            return False
        logger.info("Wait timed out: task=%s", correlation_id)
        await self._settle(expired)
        return True

    async def await_result(self, handle: WaitHandle) -> WaitResult:
        """Suspend until the wait completes.

        Raises:
            CancellationError: the wait was abandoned or its parent was cancelled.
            asyncio.CancelledError: the awaiting coroutine was cancelled; the
                persisted wait is untouched and can still be acted on.
        """
        fut = self._waiters.get(handle.correlation_id)
        if fut is None or fut.done():
            fut = asyncio.get_running_loop().create_future()
            self._waiters[handle.correlation_id] = fut
        task = await self.get(handle.correlation_id, tenant_id=handle.tenant_id)
        if task.is_terminal:
            self._waiters.pop(handle.correlation_id, None)
            return self._result_or_raise(task)
        # a cancelled awaiter leaves the task PENDING; only cancel_parent abandons
        result = await asyncio.shield(fut)
        if result.state is TaskState.ABANDONED:
            raise CancellationError(handle.correlation_id, handle.parent_instance_id)
        return result

    async def cancel_parent(self, parent_instance_id: str) -> int:
        """Cancel the waits a workflow instance owns.

        Tasks without survive_parent_close become ABANDONED; surviving tasks
        stay PENDING. Waiters of both fail with CancellationError. Returns
        the number of tasks abandoned.
        """
        async with self.provider.transaction(system=True) as repos:
            tasks = await repos.tasks.list_by_parent(parent_instance_id, TaskState.PENDING)
        abandoned = 0
        for task in tasks:
            if task.survive_parent_close:
                fut = self._waiters.pop(task.id, None)
                if fut is not None and not fut.done():
                    fut.set_exception(CancellationError(task.id, parent_instance_id))
                    # mark retrieved so the loop does not log an unretrieved exception
                    fut.exception()
                continue
            if await self._abandon(task.id, task.tenant_id):
                abandoned += 1
        if tasks:
            logger.info(
                "Parent %s cancelled: %d wait(s) abandoned, %d left pending",
                parent_instance_id,
                abandoned,
                len(tasks) - abandoned,
            )
        return abandoned

    async def recover(self) -> int:
        """Re-arm timers for persisted PENDING waits; expire overdue ones now."""
        async with self.provider.transaction(system=True) as repos:
            pending = await repos.tasks.list_pending()
        now = self.clock()
        rearmed = 0
        for task in pending:
            if task.deadline_at is None:
                continue
            delay = seconds_until(task.deadline_at, now)
            if delay <= 0:
                await self.expire(task.id, tenant_id=task.tenant_id)
            else:
                self._arm(task.id, task.tenant_id, delay)
                rearmed += 1
        if pending:
            logger.info("Recovered %d pending wait(s), %d timer(s) re-armed", len(pending), rearmed)
        return rearmed

    async def on_message_appended(self, message: MessageEntity) -> None:
        """Append listener: link a task's notification message when the hint names it."""
        if not message.hint:
            return
        async with self.provider.transaction(message.tenant_id) as repos:
            task = await repos.tasks.get_by_id(message.hint)
            if task is None or task.tenant_id != message.tenant_id:
                return
            linked = await repos.tasks.link_notification(task.id, message.id)
        if linked:
            logger.debug("Task %s notification confirmed by message %s", task.id, message.id)

    async def shutdown(self) -> None:
        """Cancel timers; persisted deadlines are re-armed by recover() on next start."""
        timers = list(self._timers.values())
        self._timers.clear()
        for timer in timers:
            timer.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
        for fut in self._waiters.values():
            if not fut.done():
                fut.cancel()
        self._waiters.clear()

    @property
    def pending_timer_count(self) -> int:
        return len(self._timers)

    def _arm(self, correlation_id: str, tenant_id: str, delay: float) -> None:
        existing = self._timers.pop(correlation_id, None)
        if existing is not None:
            existing.cancel()
        self._timers[correlation_id] = asyncio.create_task(
            self._expire_after(correlation_id, tenant_id, delay),
            name=f"wait-timeout:{correlation_id}",
        )

    async def _expire_after(self, correlation_id: str, tenant_id: str, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            self._timers.pop(correlation_id, None)
            await self.expire(correlation_id, tenant_id=tenant_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Timeout handling failed for task %s", correlation_id)

    async def _abandon(self, correlation_id: str, tenant_id: str) -> bool:
        async with self.provider.transaction(tenant_id) as repos:
            task = await repos.tasks.get_by_id(correlation_id)
            if task is None or task.is_terminal:
                return False
            abandoned = task.abandon(self.clock())
            won = await repos.tasks.transition(abandoned)
        if won:
            await self._settle(abandoned)
        return won

    async def _settle(self, task: TaskEntity) -> None:
        timer = self._timers.pop(task.id, None)
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()
        fut = self._waiters.pop(task.id, None)
        if fut is not None and not fut.done():
            fut.set_result(to_wait_result(task))
        add_span_event("task.completed", {"task_id": task.id, "state": task.state.value})
        if self.publisher is not None:
            await self.publisher.publish(
                ConversationEvent(
                    kind=EVENT_TASK_COMPLETED,
                    tenant_id=task.tenant_id,
                    occurred_at=self.clock(),
                    thread_id=task.thread_id,
                    scope=task.scope,
                    task_id=task.id,
                    data={
                        "state": task.state.value,
                        "performedAction": task.performed_action,
                        "timedOut": task.timed_out,
                    },
                )
            )

    @staticmethod
    def _result_or_raise(task: TaskEntity) -> WaitResult:
        if task.state is TaskState.ABANDONED:
            raise CancellationError(task.id, task.parent_instance_id)
        return to_wait_result(task)

    @staticmethod
    def _handle(task: TaskEntity) -> WaitHandle:
        return WaitHandle(
            correlation_id=task.id,
            tenant_id=task.tenant_id,
            parent_instance_id=task.parent_instance_id,
            survive_parent_close=task.survive_parent_close,
        )
