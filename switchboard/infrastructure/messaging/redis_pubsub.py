"""Redis Pub/Sub for conversation events.

Publishes thread_created, message_appended and task_completed events on a
per-tenant channel (conversation:{tenant_id}) so dashboards and bridges can
follow conversations without polling the history API.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis

from switchboard.application.dtos.events import ConversationEvent
from switchboard.core.config import get_settings
from switchboard.core.constants import CONVERSATION_CHANNEL_PREFIX

logger = logging.getLogger(__name__)


def event_to_dict(event: ConversationEvent) -> dict[str, Any]:
    return {
        "kind": event.kind,
        "tenantId": event.tenant_id,
        "occurredAt": event.occurred_at.isoformat(),
        "threadId": event.thread_id,
        "scope": event.scope,
        "messageId": event.message_id,
        "taskId": event.task_id,
        "data": event.data,
    }


class _RedisPubSubBase:
    """Shared Redis connection and channel logic for conversation pub/sub."""

    CHANNEL_PREFIX = CONVERSATION_CHANNEL_PREFIX

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        self.redis = redis_client
        self.settings = get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self._connected:
            return
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value() if self.settings.redis_password else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis pub/sub connected")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis pub/sub connection failed: %s", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.close()
            self._connected = False
            logger.info("Redis pub/sub disconnected")

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    def _get_channel(self, tenant_id: str) -> str:
        return f"{self.CHANNEL_PREFIX}:{tenant_id}"


class ConversationEventPublisher(_RedisPubSubBase):
    """Publishes conversation events to the tenant channel."""

    async def publish(self, event: ConversationEvent) -> bool:
        """Publish an event. Returns False if Redis is unavailable or the publish failed."""
        if not self.is_available() or self.redis is None:
            logger.debug("Redis not available, skipping publish")
            return False
        try:
            channel = self._get_channel(event.tenant_id)
            await self.redis.publish(channel, json.dumps(event_to_dict(event), default=str))
            logger.debug("Published %s to %s", event.kind, channel)
        except redis.RedisError:
            logger.exception("Failed to publish conversation event %s", event.kind)
            return False
        else:
            return True

