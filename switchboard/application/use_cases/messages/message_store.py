"""Message store: append-only, per-bucket totally ordered message log."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from switchboard.application.dtos.events import ConversationEvent
from switchboard.application.dtos.message import MessageDraft
from switchboard.application.interfaces.repositories import IRepositoryProvider
from switchboard.application.interfaces.services import IConversationEventPublisher
from switchboard.application.use_cases.messages.scope_index import require_thread
from switchboard.core.constants import EVENT_MESSAGE_APPENDED
from switchboard.domain.entities.message import MessageEntity
from switchboard.domain.enums import MessageDirection
from switchboard.domain.exceptions import ResourceNotFoundException
from switchboard.domain.value_objects.core import normalize_scope
from switchboard.shared.telemetry.logging import get_logger
from switchboard.shared.telemetry.tracing import add_span_event, traced
from switchboard.shared.utils.datetime import utc_now

logger = get_logger(__name__)

AppendListener = Callable[[MessageEntity], Awaitable[None]]


class MessageStore:
    """Appends messages to (thread, scope) buckets.

    The bucket counter is incremented in the same transaction as the insert,
    so concurrent appends to one bucket get distinct, gap-free sequence
    numbers. Listeners run after commit.
    """

    def __init__(
        self,
        provider: IRepositoryProvider,
        publisher: IConversationEventPublisher | None = None,
    ) -> None:
        self.provider = provider
        self.publisher = publisher
        self._listeners: list[AppendListener] = []

    def add_listener(self, listener: AppendListener) -> None:
        self._listeners.append(listener)

    @traced("message_store.append")
    async def append(
        self,
        thread_id: str,
        scope: str | None,
        draft: MessageDraft,
        *,
        tenant_id: str | None = None,
        track_delivery: bool = False,
    ) -> MessageEntity:
        """Append draft to (thread, scope); durable when this returns.

        track_delivery records an outbox entry in the same transaction
        (outgoing messages awaiting transmission).
        """
        scope = normalize_scope(scope)
        async with self.provider.transaction(tenant_id) as repos:
            thread = await require_thread(repos, thread_id, tenant_id)
            bucket = await repos.scopes.get_or_create(thread.tenant_id, thread.id, scope)
            sequence = await repos.scopes.next_sequence(bucket.id, draft.hint)
            message = await repos.messages.append(thread, bucket, draft, sequence)
            if track_delivery and draft.direction is MessageDirection.OUTGOING:
                await repos.deliveries.create_pending(message)

        add_span_event(
            "message.appended",
            {"message_id": message.id, "thread_id": message.thread_id, "sequence": message.sequence},
        )
        await self._notify(message)
        return message

    async def get(self, message_id: str, *, tenant_id: str | None = None) -> MessageEntity:
        async with self.provider.transaction(tenant_id) as repos:
            message = await repos.messages.get_by_id(message_id)
        if message is None or (tenant_id is not None and message.tenant_id != tenant_id):
            raise ResourceNotFoundException("message", message_id)
        return message

    async def _notify(self, message: MessageEntity) -> None:
        if self.publisher is not None:
            await self.publisher.publish(
                ConversationEvent(
                    kind=EVENT_MESSAGE_APPENDED,
                    tenant_id=message.tenant_id,
                    occurred_at=utc_now(),
                    thread_id=message.thread_id,
                    scope=message.scope,
                    message_id=message.id,
                    data={
                        "direction": message.direction.value,
                        "type": message.message_type.value,
                        "sequence": message.sequence,
                        "hint": message.hint,
                    },
                )
            )
        for listener in self._listeners:
            try:
                await listener(message)
            except (AssertionError, AttributeError, IndexError, KeyError, NameError, TypeError):
                raise
            except Exception:
                # The message is already durable; a failing listener must not undo the append.
                logger.exception(
                    "Append listener failed for message %s in thread %s",
                    message.id,
                    message.thread_id,
                )
