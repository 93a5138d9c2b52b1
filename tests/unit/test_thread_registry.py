"""Tests for thread resolution: uniqueness, lazy creation and identity errors."""

import asyncio

import pytest

from switchboard.core.container import ServiceContainer
from switchboard.domain.exceptions import (
    InvalidKeyError,
    ResourceNotFoundException,
    TenantMismatchError,
    WorkflowNotFoundError,
)

WF = "Support:Conversational"


async def test_resolve_or_create_is_idempotent(container: ServiceContainer, tenant_id: str) -> None:
    first = await container.thread_registry.resolve_or_create(tenant_id, WF, "alice")
    second = await container.thread_registry.resolve_or_create(tenant_id, WF, "alice")
    assert first.id == second.id
    assert first.key.participant_id == "alice"


async def test_concurrent_first_calls_converge(container: ServiceContainer, tenant_id: str) -> None:
    threads = await asyncio.gather(
        *(container.thread_registry.resolve_or_create(tenant_id, WF, "bob") for _ in range(25))
    )
    assert len({t.id for t in threads}) == 1


async def test_distinct_keys_get_distinct_threads(container: ServiceContainer, tenant_id: str) -> None:
    a = await container.thread_registry.resolve_or_create(tenant_id, WF, "alice")
    b = await container.thread_registry.resolve_or_create(tenant_id, WF, "bob")
    c = await container.thread_registry.resolve_or_create(tenant_id, "Support:Approvals", "alice")
    assert len({a.id, b.id, c.id}) == 3


async def test_empty_participant_is_invalid_key(container: ServiceContainer, tenant_id: str) -> None:
    with pytest.raises(InvalidKeyError):
        await container.thread_registry.resolve_or_create(tenant_id, WF, "")


async def test_unregistered_workflow(container: ServiceContainer, tenant_id: str) -> None:
    with pytest.raises(WorkflowNotFoundError):
        await container.thread_registry.resolve_or_create(tenant_id, "Support:Nope", "alice")


async def test_caller_tenant_mismatch(container: ServiceContainer, tenant_id: str) -> None:
    with pytest.raises(TenantMismatchError):
        await container.thread_registry.resolve_or_create(
            tenant_id, WF, "alice", caller_tenant_id="someone-else"
        )
    assert await container.thread_registry.find(tenant_id, WF, "alice") is None


async def test_get_checks_tenant(container: ServiceContainer, tenant_id: str) -> None:
    thread = await container.thread_registry.resolve_or_create(tenant_id, WF, "alice")
    assert (await container.thread_registry.get(thread.id, tenant_id=tenant_id)).id == thread.id
    with pytest.raises(ResourceNotFoundException):
        await container.thread_registry.get(thread.id, tenant_id="other-tenant")


async def test_list_threads(container: ServiceContainer, tenant_id: str) -> None:
    for participant in ("a", "b", "c"):
        await container.thread_registry.resolve_or_create(tenant_id, WF, participant)
    threads = await container.thread_registry.list_threads(tenant_id, WF)
    assert {t.participant_id for t in threads} == {"a", "b", "c"}
    assert len(await container.thread_registry.list_threads(tenant_id, WF, skip=0, limit=2)) == 2
