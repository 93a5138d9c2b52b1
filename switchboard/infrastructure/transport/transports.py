"""Outbound transports: hand a persisted outgoing message to the participant-facing surface.

LogOnlyTransport   -> log the message (development default)
HttpCallbackTransport -> POST the message as JSON to a callback URL (httpx)
RedisTransport     -> publish the message on delivery:{tenant_id}
RetryingTransport  -> wrap any of the above with RetryPolicy backoff
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
import redis.asyncio as redis

from switchboard.application.interfaces.services import ITransport
from switchboard.domain.entities.message import MessageEntity, payload_to_wire
from switchboard.domain.exceptions import DeliveryError
from switchboard.infrastructure.transport.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

DELIVERY_CHANNEL_PREFIX = "delivery"


def delivery_payload(message: MessageEntity) -> dict[str, Any]:
    """JSON body describing an outgoing message for external delivery."""
    message_type, text, data = payload_to_wire(message.payload)
    return {
        "messageId": message.id,
        "tenantId": message.tenant_id,
        "threadId": message.thread_id,
        "workflowId": message.workflow_id,
        "participantId": message.participant_id,
        "scope": message.scope,
        "sequence": message.sequence,
        "type": message_type.value,
        "text": text,
        "data": data,
        "hint": message.hint,
        "metadata": message.metadata,
        "createdAt": message.created_at.isoformat(),
    }


class LogOnlyTransport:
    """Records deliveries in the log; participants read them through the history API."""

    async def transmit(self, message: MessageEntity) -> None:
        logger.info(
            "Deliver %s to %s (workflow=%s scope=%s seq=%d)",
            message.message_type.value,
            message.participant_id,
            message.workflow_id,
            message.scope,
            message.sequence,
        )


class HttpCallbackTransport:
    """POSTs each outgoing message to a configured callback URL."""

    def __init__(
        self,
        callback_url: str,
        *,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.callback_url = callback_url
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = client is None

    async def transmit(self, message: MessageEntity) -> None:
        response = await self._client.post(self.callback_url, json=delivery_payload(message))
        response.raise_for_status()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class RedisTransport:
    """Publishes outgoing messages on the tenant's delivery channel."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self.redis = redis_client

    async def transmit(self, message: MessageEntity) -> None:
        channel = f"{DELIVERY_CHANNEL_PREFIX}:{message.tenant_id}"
        await self.redis.publish(channel, json.dumps(delivery_payload(message), default=str))

    async def close(self) -> None:
        await self.redis.close()


class RetryingTransport:
    """Retries a transport per RetryPolicy; raises DeliveryError when attempts run out."""

    def __init__(self, inner: ITransport, policy: RetryPolicy | None = None) -> None:
        self.inner = inner
        self.policy = policy or RetryPolicy()

    async def transmit(self, message: MessageEntity) -> None:
        attempt = 0
        while True:
            attempt += 1
            try:
                await self.inner.transmit(message)
            except DeliveryError:
                raise
            except Exception as e:
                if not self.policy.should_retry(attempt, e):
                    logger.warning(
                        "Delivery of message %s failed after %d attempt(s): %s", message.id, attempt, e
                    )
                    raise DeliveryError(message.id, str(e) or type(e).__name__, attempt) from e
                delay = self.policy.calculate_delay(attempt)
                logger.info(
                    "Delivery of message %s failed (attempt %d/%d), retrying in %.2fs: %s",
                    message.id,
                    attempt,
                    self.policy.max_attempts,
                    delay,
                    e,
                )
                await asyncio.sleep(delay)
            else:
                return

    async def close(self) -> None:
        close = getattr(self.inner, "close", None)
        if close is not None:
            await close()
