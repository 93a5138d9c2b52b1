"""Tests for message ordering, scope isolation, paging and hints."""

import asyncio

import pytest

from switchboard.application.dtos.message import MessageDraft
from switchboard.core.container import ServiceContainer
from switchboard.domain.entities.message import ChatPayload
from switchboard.domain.enums import MessageDirection
from switchboard.domain.exceptions import ResourceNotFoundException, ValidationException

WF = "Support:Conversational"


def _draft(text: str, hint: str | None = None) -> MessageDraft:
    return MessageDraft(direction=MessageDirection.INCOMING, payload=ChatPayload(text), hint=hint)


@pytest.fixture
async def thread(container: ServiceContainer, tenant_id: str):
    return await container.thread_registry.resolve_or_create(tenant_id, WF, "alice")


async def test_sequences_are_gap_free_per_bucket(container: ServiceContainer, thread) -> None:
    store = container.message_store
    sent = [await store.append(thread.id, "billing", _draft(f"m{i}")) for i in range(3)]
    other = await store.append(thread.id, None, _draft("x"))
    assert [m.sequence for m in sent] == [1, 2, 3]
    assert other.sequence == 1


async def test_concurrent_appends_get_distinct_sequences(container: ServiceContainer, thread) -> None:
    messages = await asyncio.gather(
        *(container.message_store.append(thread.id, "s", _draft(str(i))) for i in range(20))
    )
    assert sorted(m.sequence for m in messages) == list(range(1, 21))


async def test_append_to_unknown_thread(container: ServiceContainer) -> None:
    with pytest.raises(ResourceNotFoundException):
        await container.message_store.append("missing", None, _draft("hi"))


async def test_scope_isolation_including_null_scope(container: ServiceContainer, thread) -> None:
    store, index = container.message_store, container.scope_index
    await store.append(thread.id, "A", _draft("a1"))
    await store.append(thread.id, None, _draft("n1"))
    await store.append(thread.id, "B", _draft("b1"))
    await store.append(thread.id, "A", _draft("a2"))

    assert [m.text for m in await index.history(thread.id, "A")] == ["a2", "a1"]
    assert [m.text for m in await index.history(thread.id, None)] == ["n1"]
    assert [m.text for m in await index.history(thread.id, "  ")] == ["n1"]
    assert [m.text for m in await index.history(thread.id, "a")] == []
    assert await index.list_scopes(thread.id) == ["A", None, "B"]


async def test_paging_newest_first_without_gaps(container: ServiceContainer, thread) -> None:
    for i in range(1, 8):
        await container.message_store.append(thread.id, None, _draft(f"m{i}"))
    index = container.scope_index
    page1 = await index.history(thread.id, None, page=1, page_size=3)
    page2 = await index.history(thread.id, None, page=2, page_size=3)
    page3 = await index.history(thread.id, None, page=3, page_size=3)
    assert [m.text for m in page1] == ["m7", "m6", "m5"]
    assert [m.text for m in page2] == ["m4", "m3", "m2"]
    assert [m.text for m in page3] == ["m1"]
    assert await index.history(thread.id, None, page=4, page_size=3) == []


async def test_paging_arguments_validated(container: ServiceContainer, thread) -> None:
    with pytest.raises(ValidationException):
        await container.scope_index.history(thread.id, None, page=0)
    with pytest.raises(ValidationException):
        await container.scope_index.history(thread.id, None, page_size=0)


async def test_page_size_capped(container: ServiceContainer, thread) -> None:
    container.scope_index.max_page_size = 2
    for i in range(3):
        await container.message_store.append(thread.id, None, _draft(str(i)))
    assert len(await container.scope_index.history(thread.id, None, page_size=50)) == 2


async def test_hint_latest_non_null_wins(container: ServiceContainer, thread) -> None:
    store, hints = container.message_store, container.hint_overlay
    assert await hints.get_last_hint(thread.id, None) is None
    await store.append(thread.id, None, _draft("1", hint="A"))
    await store.append(thread.id, None, _draft("2"))
    assert await hints.get_last_hint(thread.id, None) == "A"
    await store.append(thread.id, None, _draft("3", hint="B"))
    assert await hints.get_last_hint(thread.id, None) == "B"
    assert await hints.get_last_hint(thread.id, "other") is None


async def test_set_hint(container: ServiceContainer, thread) -> None:
    await container.hint_overlay.set_hint(thread.id, "orders", "order-42")
    assert await container.hint_overlay.get_last_hint(thread.id, "orders") == "order-42"
    with pytest.raises(ValidationException):
        await container.hint_overlay.set_hint(thread.id, "orders", " ")


async def test_authorization_stored_as_digest(container: ServiceContainer, thread) -> None:
    draft = MessageDraft(
        direction=MessageDirection.INCOMING, payload=ChatPayload("hi"), authorization="secret-token"
    )
    message = await container.message_store.append(thread.id, None, draft)
    assert message.authorization_digest
    assert message.authorization_digest != "secret-token"
