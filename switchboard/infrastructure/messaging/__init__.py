"""Messaging: Redis pub/sub for conversation events."""

from switchboard.infrastructure.messaging.redis_pubsub import ConversationEventPublisher

__all__ = ["ConversationEventPublisher"]
