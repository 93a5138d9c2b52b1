"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from switchboard.application.dtos.events import ConversationEvent
    from switchboard.domain.entities.message import MessageEntity


class IConversationEventPublisher(Protocol):
    """Publishes conversation events (thread created, message appended, task completed)."""

    async def publish(self, event: ConversationEvent) -> bool:
        """Publish to the tenant channel. Returns False when unavailable; never raises."""


class ITransport(Protocol):
    """Delivers a persisted outgoing message to its participant-facing surface."""

    async def transmit(self, message: MessageEntity) -> None:
        """Deliver the message; raises on failure so the caller can retry or record it."""
