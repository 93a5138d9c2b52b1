"""Tests for exactly-once webhook responses."""

import asyncio

import pytest

from switchboard.application.dtos.message import InboundMessage
from switchboard.application.dtos.webhook import WebhookResponse
from switchboard.core.container import ServiceContainer
from switchboard.domain.entities.message import WebhookPayload
from switchboard.domain.exceptions import DuplicateResponseError, ResourceNotFoundException

WF = "Support:Conversational"


async def _accept(container: ServiceContainer, tenant_id: str, request_id: str, body=None):
    return await container.router.accept(
        InboundMessage(tenant_id, WF, "hook-user", WebhookPayload("order", body or {}), request_id=request_id)
    )


def test_response_shortcuts() -> None:
    assert WebhookResponse.ok({"a": 1}).status_code == 200
    assert WebhookResponse.bad_request().status_code == 400
    assert WebhookResponse.not_found().status_code == 404
    assert WebhookResponse.internal_error().status_code == 500
    custom = WebhookResponse.custom(202, {"queued": True}, {"X-Job": "1"})
    assert (custom.status_code, custom.headers) == (202, {"X-Job": "1"})


async def test_second_response_is_rejected(container: ServiceContainer, tenant_id) -> None:
    broker = container.webhook_broker
    await _accept(container, tenant_id, "req-1")
    await broker.respond("req-1", WebhookResponse.ok({"n": 1}))
    with pytest.raises(DuplicateResponseError):
        await broker.respond("req-1", WebhookResponse.ok({"n": 2}))
    stored = await broker.get_response("req-1")
    assert stored.body == {"n": 1}


async def test_duplicate_rejected_after_caller_timed_out(container: ServiceContainer, tenant_id) -> None:
    broker = container.webhook_broker
    await _accept(container, tenant_id, "req-late")
    broker.open("req-late")
    assert await broker.wait("req-late", timeout=0.01) is None
    await broker.respond("req-late", WebhookResponse.ok())
    with pytest.raises(DuplicateResponseError):
        await broker.respond("req-late", WebhookResponse.ok())


async def test_wait_receives_response(container: ServiceContainer, tenant_id) -> None:
    broker = container.webhook_broker
    await _accept(container, tenant_id, "req-2")
    broker.open("req-2")

    async def answer() -> None:
        await asyncio.sleep(0.01)
        await broker.respond("req-2", WebhookResponse.custom(201, {"ok": True}))

    task = asyncio.create_task(answer())
    response = await broker.wait("req-2", timeout=2)
    await task
    assert response.status_code == 201


async def test_respond_to_unknown_request(container: ServiceContainer, tenant_id) -> None:
    with pytest.raises(ResourceNotFoundException):
        await container.webhook_broker.respond("never-seen", WebhookResponse.ok())


async def test_respond_checks_tenant(container: ServiceContainer, tenant_id) -> None:
    await _accept(container, tenant_id, "req-3")
    with pytest.raises(ResourceNotFoundException):
        await container.webhook_broker.respond("req-3", WebhookResponse.ok(), tenant_id="other-tenant")


async def test_handler_respond_through_context(container: ServiceContainer, tenant_id) -> None:
    message = await _accept(container, tenant_id, "req-4", {"id": 7})
    await container.router.dispatch(message)
    response = await container.webhook_broker.get_response("req-4")
    assert response.status_code == 200
    assert response.body == {"echo": {"id": 7}, "webhook": "order"}


async def test_failing_webhook_handler_answers_500(container: ServiceContainer, tenant_id) -> None:
    message = await _accept(container, tenant_id, "req-5", {"fail": True})
    result = await container.router.dispatch(message)
    assert not result.handled
    assert (await container.webhook_broker.get_response("req-5")).status_code == 500


async def test_cancel_all(container: ServiceContainer) -> None:
    broker = container.webhook_broker
    fut = broker.open("req-open")
    assert broker.cancel_all() == 1
    assert fut.cancelled()
