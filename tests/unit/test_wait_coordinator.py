"""Tests for durable waits: action vs timeout races, cancellation and recovery."""

import asyncio
from datetime import timedelta

import pytest

from switchboard.application.dtos.task import TaskCreate
from switchboard.application.use_cases.tasks.wait_coordinator import DurableWaitCoordinator
from switchboard.core.container import ServiceContainer
from switchboard.domain.enums import TaskState
from switchboard.domain.exceptions import (
    AlreadyCompletedError,
    CancellationError,
    InvalidActionError,
    ResourceNotFoundException,
)
from switchboard.shared.utils.datetime import utc_now
from switchboard.shared.utils.generators import generate_task_id


def _create(tenant_id: str, **kwargs) -> TaskCreate:
    values = {"id": generate_task_id(), "tenant_id": tenant_id, "title": "Approve refund"}
    values.update(kwargs)
    return TaskCreate(**values)


async def test_action_completes_wait(container: ServiceContainer, tenant_id) -> None:
    coordinator = container.coordinator
    handle = await coordinator.start(_create(tenant_id))
    waiter = asyncio.create_task(coordinator.await_result(handle))
    await asyncio.sleep(0)
    await coordinator.perform_action(handle.correlation_id, "approve", "ok", tenant_id=tenant_id)
    result = await waiter
    assert result.state is TaskState.COMPLETED_BY_ACTION
    assert result.performed_action == "approve"
    assert result.comment == "ok"
    assert result.approved


async def test_await_after_completion_reads_persisted_state(container: ServiceContainer, tenant_id) -> None:
    coordinator = container.coordinator
    handle = await coordinator.start(_create(tenant_id))
    await coordinator.perform_action(handle.correlation_id, "reject")
    result = await coordinator.await_result(handle)
    assert result.performed_action == "reject"


async def test_timeout_completes_wait(container: ServiceContainer, tenant_id) -> None:
    coordinator = container.coordinator
    handle = await coordinator.start(_create(tenant_id, timeout_seconds=0.05))
    result = await asyncio.wait_for(coordinator.await_result(handle), timeout=2)
    assert result.timed_out
    assert result.state is TaskState.COMPLETED_BY_TIMEOUT
    assert result.performed_action is None
    with pytest.raises(AlreadyCompletedError):
        await coordinator.perform_action(handle.correlation_id, "approve")


async def test_action_and_timeout_race_has_one_winner(container: ServiceContainer, tenant_id) -> None:
    coordinator = container.coordinator
    handle = await coordinator.start(_create(tenant_id, timeout_seconds=60))
    outcomes = await asyncio.gather(
        coordinator.perform_action(handle.correlation_id, "approve"),
        coordinator.expire(handle.correlation_id),
        return_exceptions=True,
    )
    task = await coordinator.get(handle.correlation_id)
    assert task.is_terminal
    if task.state is TaskState.COMPLETED_BY_ACTION:
        assert outcomes[1] is False
    else:
        assert isinstance(outcomes[0], AlreadyCompletedError)
    assert coordinator.pending_timer_count == 0


async def test_invalid_action_and_tenant_checks(container: ServiceContainer, tenant_id) -> None:
    coordinator = container.coordinator
    handle = await coordinator.start(_create(tenant_id, actions=("approve",)))
    with pytest.raises(InvalidActionError):
        await coordinator.perform_action(handle.correlation_id, "reject")
    with pytest.raises(ResourceNotFoundException) as exc_info:
        await coordinator.perform_action(handle.correlation_id, "approve", tenant_id="other-tenant")
    assert tenant_id not in str(exc_info.value.to_dict())
    with pytest.raises(ResourceNotFoundException):
        await coordinator.perform_action("task-missing", "approve")
    assert (await coordinator.get(handle.correlation_id)).state is TaskState.PENDING


async def test_cancel_parent_abandons_and_fails_waiter(container: ServiceContainer, tenant_id) -> None:
    coordinator = container.coordinator
    handle = await coordinator.start(_create(tenant_id, parent_instance_id="wf-1"))
    waiter = asyncio.create_task(coordinator.await_result(handle))
    await asyncio.sleep(0)
    assert await coordinator.cancel_parent("wf-1") == 1
    with pytest.raises(CancellationError):
        await waiter
    assert (await coordinator.get(handle.correlation_id)).state is TaskState.ABANDONED


async def test_cancelled_awaiter_leaves_task_pending(container: ServiceContainer, tenant_id) -> None:
    coordinator = container.coordinator
    handle = await coordinator.start(_create(tenant_id))
    waiter = asyncio.create_task(coordinator.await_result(handle))
    await asyncio.sleep(0.01)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert (await coordinator.get(handle.correlation_id)).state is TaskState.PENDING
    result = await coordinator.perform_action(handle.correlation_id, "approve")
    assert result.performed_action == "approve"


async def test_surviving_task_stays_pending(container: ServiceContainer, tenant_id) -> None:
    coordinator = container.coordinator
    handle = await coordinator.start(
        _create(tenant_id, parent_instance_id="wf-2", survive_parent_close=True)
    )
    waiter = asyncio.create_task(coordinator.await_result(handle))
    await asyncio.sleep(0)
    assert await coordinator.cancel_parent("wf-2") == 0
    with pytest.raises(CancellationError):
        await waiter
    assert (await coordinator.get(handle.correlation_id)).state is TaskState.PENDING
    result = await coordinator.perform_action(handle.correlation_id, "approve")
    assert result.state is TaskState.COMPLETED_BY_ACTION


async def test_recover_after_restart(container: ServiceContainer, tenant_id) -> None:
    """A new coordinator over the same storage expires overdue waits and re-arms the rest."""
    overdue = await container.coordinator.start(_create(tenant_id, timeout_seconds=30))
    later = await container.coordinator.start(_create(tenant_id, timeout_seconds=30))
    await container.coordinator.shutdown()

    restarted = DurableWaitCoordinator(
        container.provider, clock=lambda: utc_now() + timedelta(seconds=31)
    )
    async with container.provider.transaction(tenant_id) as repos:
        task = await repos.tasks.get_by_id(later.correlation_id)
    assert task.deadline_at is not None

    rearmed = await restarted.recover()
    assert rearmed == 0
    assert (await restarted.get(overdue.correlation_id)).state is TaskState.COMPLETED_BY_TIMEOUT
    assert (await restarted.get(later.correlation_id)).state is TaskState.COMPLETED_BY_TIMEOUT

    fresh = await container.coordinator.start(_create(tenant_id, timeout_seconds=30))
    await container.coordinator.shutdown()
    second = DurableWaitCoordinator(container.provider)
    assert await second.recover() == 1
    assert second.pending_timer_count == 1
    assert (await second.get(fresh.correlation_id)).state is TaskState.PENDING
    await second.shutdown()


async def test_exists(container: ServiceContainer, tenant_id) -> None:
    handle = await container.coordinator.start(_create(tenant_id))
    assert await container.coordinator.exists(handle.correlation_id)
    assert not await container.coordinator.exists("task-nope")
