"""Tests for inbound dispatch and outbound sends through the delivery router."""

import pytest

from switchboard.application.context import WorkflowContext
from switchboard.application.dtos.message import InboundMessage, MessageDraft
from switchboard.core.config import get_settings
from switchboard.core.constants import META_SENDER_WORKFLOW, META_SENT_AS
from switchboard.core.container import ServiceContainer
from switchboard.domain.entities.message import ChatPayload, DataPayload, WebhookPayload
from switchboard.domain.enums import DeliveryStatus, MessageDirection, MessageType
from switchboard.domain.exceptions import DeliveryError, DuplicateResponseError, WorkflowNotFoundError
from switchboard.infrastructure.transport import RetryingTransport, RetryPolicy

WF = "Support:Conversational"


class FailingTransport:
    def __init__(self) -> None:
        self.calls = 0

    async def transmit(self, message) -> None:
        self.calls += 1
        raise ConnectionError("callback unreachable")


def _inbound(tenant_id: str, text: str, workflow: str = WF, scope: str | None = None) -> InboundMessage:
    return InboundMessage(
        tenant_id=tenant_id, workflow_id=workflow, participant_id="alice", payload=ChatPayload(text), scope=scope
    )


async def test_receive_runs_handler_and_replies_in_scope(container: ServiceContainer, tenant_id, transport) -> None:
    result = await container.router.receive(_inbound(tenant_id, "Hello", scope="s1"))
    assert result.handled
    assert result.message.direction is MessageDirection.INCOMING
    assert [r.text for r in result.replies] == ["Hi"]
    assert result.replies[0].scope == "s1"
    assert result.replies[0].thread_id == result.message.thread_id
    assert transport.sent == result.replies


async def test_data_handler_reply(container: ServiceContainer, tenant_id) -> None:
    inbound = InboundMessage(tenant_id, WF, "alice", DataPayload({"n": 1}))
    result = await container.router.receive(inbound)
    assert result.replies[0].message_type is MessageType.DATA
    assert result.replies[0].data == {"received": {"n": 1}}


async def test_failing_handler_gets_fallback_reply(container: ServiceContainer, tenant_id) -> None:
    result = await container.router.receive(_inbound(tenant_id, "anything", workflow="Support:Broken"))
    assert not result.handled
    assert result.error == "boom"
    assert [r.text for r in result.replies] == [get_settings().fallback_message]


async def test_fallback_reply_is_persisted_and_transmitted(container: ServiceContainer, tenant_id, transport) -> None:
    result = await container.router.receive(_inbound(tenant_id, "x", workflow="Support:Broken"))
    fallback = result.replies[0]
    assert fallback.direction is MessageDirection.OUTGOING
    assert transport.sent[-1].id == fallback.id
    history = await container.scope_index.history(result.message.thread_id, None)
    assert [m.id for m in history] == [fallback.id, result.message.id]


async def test_missing_handler_stores_without_dispatch(container: ServiceContainer, tenant_id) -> None:
    inbound = InboundMessage(tenant_id, "Support:Approvals", "alice", DataPayload({"x": 1}))
    result = await container.router.receive(inbound)
    assert not result.handled
    history = await container.scope_index.history(result.message.thread_id, None)
    assert [m.id for m in history] == [result.message.id]


async def test_unknown_workflow_persists_nothing(container: ServiceContainer, tenant_id) -> None:
    with pytest.raises(WorkflowNotFoundError):
        await container.router.receive(_inbound(tenant_id, "hi", workflow="Support:Nope"))


async def test_send_proactive_default_null_scope(container: ServiceContainer, tenant_id, transport) -> None:
    ctx = WorkflowContext(tenant_id=tenant_id, workflow_type=WF)
    sent = await container.router.send_proactive(ctx, "carol", "Your order shipped")
    assert sent.scope is None
    assert sent.direction is MessageDirection.OUTGOING
    assert transport.sent[-1].id == sent.id
    async with container.provider.transaction(tenant_id) as repos:
        assert await repos.deliveries.get_status(sent.id) is DeliveryStatus.SENT


async def test_send_as_workflow_uses_target_thread(container: ServiceContainer, tenant_id) -> None:
    ctx = WorkflowContext(tenant_id=tenant_id, workflow_type="Support:Review", participant_id="dave")
    sent = await container.router.send_as_workflow(ctx, "conversational", "dave", "From review")
    thread = await container.thread_registry.find(tenant_id, WF, "dave")
    assert thread is not None
    assert sent.thread_id == thread.id
    assert sent.workflow_id == WF
    assert sent.metadata[META_SENDER_WORKFLOW] == "Support:Review"
    assert sent.metadata[META_SENT_AS] == WF


async def test_send_as_rejects_custom_workflow(container: ServiceContainer, tenant_id) -> None:
    ctx = WorkflowContext(tenant_id=tenant_id, workflow_type=WF)
    with pytest.raises(WorkflowNotFoundError):
        await container.router.send_as_workflow(ctx, "Review", "dave", "nope")


async def test_handoff_marker(container: ServiceContainer, tenant_id) -> None:
    inbound = await container.router.accept(_inbound(tenant_id, "help", scope="s"))
    marker = await container.router.send_handoff(inbound, "Support:Approvals", "escalating")
    assert marker.message_type is MessageType.HANDOFF
    assert marker.data["targetWorkflowId"] == "Support:Approvals"
    assert marker.thread_id == inbound.thread_id
    assert marker.scope == "s"
    with pytest.raises(WorkflowNotFoundError):
        await container.router.send_handoff(inbound, "Support:Nope")


async def test_delivery_error_keeps_message_persisted(container: ServiceContainer, tenant_id) -> None:
    failing = FailingTransport()
    container.router.transport = RetryingTransport(
        failing, RetryPolicy(initial_delay_seconds=0, max_attempts=2)
    )
    ctx = WorkflowContext(tenant_id=tenant_id, workflow_type=WF)
    with pytest.raises(DeliveryError) as exc_info:
        await container.router.send_proactive(ctx, "erin", "will fail")
    assert failing.calls == 2
    assert exc_info.value.details["attempts"] == 2

    message_id = exc_info.value.details["message_id"]
    async with container.provider.transaction(tenant_id) as repos:
        assert await repos.messages.get_by_id(message_id) is not None
        assert await repos.deliveries.get_status(message_id) is DeliveryStatus.FAILED


async def test_redeliver_pending(container: ServiceContainer, tenant_id, transport) -> None:
    thread = await container.thread_registry.resolve_or_create(tenant_id, WF, "frank")
    draft = MessageDraft(direction=MessageDirection.OUTGOING, payload=ChatPayload("queued"))
    message = await container.message_store.append(thread.id, None, draft, track_delivery=True)
    assert await container.router.redeliver_pending() == 1
    assert transport.sent[-1].id == message.id
    assert await container.router.redeliver_pending() == 0


async def test_webhook_without_handler_answers_not_found(container: ServiceContainer, tenant_id) -> None:
    inbound = InboundMessage(
        tenant_id, "Support:Approvals", "alice", WebhookPayload("order", {"id": 1}), request_id="req-nohandler"
    )
    await container.router.receive(inbound)
    response = await container.webhook_broker.get_response("req-nohandler")
    assert response is not None
    assert response.status_code == 404


async def test_send_webhook_response_takes_status_body_and_headers(container: ServiceContainer, tenant_id) -> None:
    await container.router.accept(
        InboundMessage(tenant_id, WF, "hook-user", WebhookPayload("order", {}), request_id="req-args")
    )
    await container.router.send_webhook_response("req-args", 202, {"queued": True}, {"X-Job": "7"})
    response = await container.webhook_broker.get_response("req-args")
    assert (response.status_code, response.body, response.headers) == (202, {"queued": True}, {"X-Job": "7"})
    with pytest.raises(DuplicateResponseError):
        await container.router.send_webhook_response("req-args", 200)
