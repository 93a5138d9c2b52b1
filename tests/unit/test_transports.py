"""Tests for the retry policy and outbound transports."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import httpx
import pytest

from switchboard.domain.entities.message import ChatPayload, MessageEntity
from switchboard.domain.enums import MessageDirection
from switchboard.domain.exceptions import DeliveryError
from switchboard.infrastructure.transport import (
    HttpCallbackTransport,
    RedisTransport,
    RetryingTransport,
    RetryPolicy,
)
from switchboard.infrastructure.transport.transports import delivery_payload


def _message() -> MessageEntity:
    return MessageEntity(
        id="msg-1",
        tenant_id="t1",
        thread_id="th-1",
        scope_bucket_id="b-1",
        workflow_id="Support:Conversational",
        participant_id="alice",
        scope="billing",
        direction=MessageDirection.OUTGOING,
        payload=ChatPayload("Hi"),
        sequence=2,
        created_at=datetime(2026, 1, 1, tzinfo=UTC),
        hint="task-1",
    )


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://callback.test/deliver")
    return httpx.HTTPStatusError("error", request=request, response=httpx.Response(code, request=request))


def test_backoff_is_exponential_and_capped() -> None:
    policy = RetryPolicy(initial_delay_seconds=0.5, backoff_factor=2.0, max_delay_seconds=3.0)
    assert [policy.calculate_delay(n) for n in (1, 2, 3, 4)] == [0.5, 1.0, 2.0, 3.0]


def test_retryable_errors() -> None:
    policy = RetryPolicy()
    assert policy.is_retryable(_status_error(503))
    assert policy.is_retryable(_status_error(429))
    assert not policy.is_retryable(_status_error(400))
    assert policy.is_retryable(httpx.ConnectError("refused"))
    assert policy.is_retryable(TimeoutError())
    assert not policy.is_retryable(ValueError("bad payload"))
    assert not policy.should_retry(policy.max_attempts, TimeoutError())


def test_policy_requires_an_attempt() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_delivery_payload_shape() -> None:
    body = delivery_payload(_message())
    assert body["messageId"] == "msg-1"
    assert body["type"] == "Chat"
    assert body["text"] == "Hi"
    assert body["scope"] == "billing"
    assert body["hint"] == "task-1"


async def test_retrying_transport_recovers() -> None:
    inner = AsyncMock()
    inner.transmit.side_effect = [ConnectionError("down"), None]
    transport = RetryingTransport(inner, RetryPolicy(initial_delay_seconds=0))
    await transport.transmit(_message())
    assert inner.transmit.await_count == 2


async def test_retrying_transport_gives_up_on_permanent_error() -> None:
    inner = AsyncMock()
    inner.transmit.side_effect = _status_error(400)
    transport = RetryingTransport(inner, RetryPolicy(initial_delay_seconds=0, max_attempts=5))
    with pytest.raises(DeliveryError) as exc_info:
        await transport.transmit(_message())
    assert inner.transmit.await_count == 1
    assert exc_info.value.details["attempts"] == 1


async def test_http_callback_transport_posts_json() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = HttpCallbackTransport("http://callback.test/deliver", client=client)
    await transport.transmit(_message())
    await client.aclose()
    assert seen[0].url.path == "/deliver"
    assert b'"messageId":"msg-1"' in seen[0].content.replace(b" ", b"")


async def test_http_callback_transport_raises_on_error_status() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(502)))
    transport = HttpCallbackTransport("http://callback.test/deliver", client=client)
    with pytest.raises(httpx.HTTPStatusError):
        await transport.transmit(_message())
    await client.aclose()


async def test_redis_transport_publishes_on_tenant_channel() -> None:
    client = AsyncMock()
    await RedisTransport(client).transmit(_message())
    channel, payload = client.publish.await_args.args
    assert channel == "delivery:t1"
    assert '"messageId": "msg-1"' in payload
