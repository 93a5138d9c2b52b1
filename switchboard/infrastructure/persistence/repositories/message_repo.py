"""Message repository. Append-only: no update or delete."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from switchboard.application.dtos.message import MessageDraft
from switchboard.domain.entities.message import MessageEntity, payload_from_wire, payload_to_wire
from switchboard.domain.entities.thread import ScopeBucketEntity, ThreadEntity
from switchboard.domain.enums import MessageDirection, MessageType
from switchboard.infrastructure.persistence.models.message import Message
from switchboard.shared.utils.generators import digest_token


def _message_to_entity(m: Message) -> MessageEntity:
    return MessageEntity(
        id=m.id,
        tenant_id=m.tenant_id,
        thread_id=m.thread_id,
        scope_bucket_id=m.scope_id,
        workflow_id=m.workflow_id,
        participant_id=m.participant_id,
        scope=m.scope,
        direction=MessageDirection(m.direction),
        payload=payload_from_wire(MessageType(m.message_type), m.text, m.data),
        sequence=m.sequence,
        created_at=m.created_at,
        hint=m.hint,
        request_id=m.request_id,
        authorization_digest=m.authorization_digest,
        metadata=dict(m.message_metadata or {}),
    )


class MessageRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def append(
        self,
        thread: ThreadEntity,
        bucket: ScopeBucketEntity,
        draft: MessageDraft,
        sequence: int,
    ) -> MessageEntity:
        message_type, text, data = payload_to_wire(draft.payload)
        row = Message(
            tenant_id=thread.tenant_id,
            thread_id=thread.id,
            scope_id=bucket.id,
            sequence=sequence,
            scope=bucket.scope,
            workflow_id=thread.workflow_id,
            participant_id=thread.participant_id,
            direction=draft.direction.value,
            message_type=message_type.value,
            text=text,
            data=data,
            message_metadata=dict(draft.metadata),
            hint=draft.hint,
            request_id=draft.request_id,
            authorization_digest=digest_token(draft.authorization),
        )
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return _message_to_entity(row)

    async def get_by_id(self, message_id: str) -> MessageEntity | None:
        row = await self.db.get(Message, message_id)
        return _message_to_entity(row) if row else None

    async def get_by_request_id(self, request_id: str) -> MessageEntity | None:
        result = await self.db.execute(
            select(Message).where(
                Message.request_id == request_id,
                Message.direction == MessageDirection.INCOMING.value,
            )
        )
        row = result.scalar_one_or_none()
        return _message_to_entity(row) if row else None

    async def get_page(self, bucket_id: str, skip: int = 0, limit: int = 20) -> list[MessageEntity]:
        """Newest first."""
        result = await self.db.execute(
            select(Message)
            .where(Message.scope_id == bucket_id)
            .order_by(Message.sequence.desc())
            .offset(skip)
            .limit(limit)
        )
        return [_message_to_entity(m) for m in result.scalars().all()]
