"""Webhook response and message delivery (outbox) repositories."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from switchboard.application.dtos.webhook import WebhookResponse
from switchboard.domain.entities.message import MessageEntity
from switchboard.domain.enums import DeliveryStatus
from switchboard.domain.exceptions import DuplicateResponseError
from switchboard.infrastructure.persistence.models.delivery import MessageDelivery, WebhookResponseRecord
from switchboard.shared.utils.datetime import utc_now


class WebhookResponseRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def record(self, tenant_id: str, request_id: str, response: WebhookResponse) -> None:
        """Insert the single response for request_id; raises DuplicateResponseError otherwise."""
        stmt = (
            pg_insert(WebhookResponseRecord)
            .values(
                request_id=request_id,
                tenant_id=tenant_id,
                status_code=response.status_code,
                body=response.body,
                headers=dict(response.headers),
            )
            .on_conflict_do_nothing(index_elements=["request_id"])
            .returning(WebhookResponseRecord.request_id)
        )
        if (await self.db.execute(stmt)).scalar_one_or_none() is None:
            raise DuplicateResponseError(request_id)

    async def get(self, request_id: str) -> WebhookResponse | None:
        row = await self.db.get(WebhookResponseRecord, request_id)
        if row is None:
            return None
        return WebhookResponse(status_code=row.status_code, body=row.body, headers=dict(row.headers or {}))


class DeliveryRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_pending(self, message: MessageEntity) -> None:
        self.db.add(
            MessageDelivery(
                tenant_id=message.tenant_id,
                message_id=message.id,
                status=DeliveryStatus.PENDING.value,
                attempts=0,
            )
        )
        await self.db.flush()

    async def mark_sent(self, message_id: str, attempts: int) -> None:
        await self.db.execute(
            update(MessageDelivery)
            .where(MessageDelivery.message_id == message_id)
            .values(
                status=DeliveryStatus.SENT.value,
                attempts=MessageDelivery.attempts + attempts,
                delivered_at=utc_now(),
                last_error=None,
            )
        )

    async def mark_failed(self, message_id: str, error: str, attempts: int) -> None:
        await self.db.execute(
            update(MessageDelivery)
            .where(MessageDelivery.message_id == message_id)
            .values(
                status=DeliveryStatus.FAILED.value,
                attempts=MessageDelivery.attempts + attempts,
                last_error=error,
            )
        )

    async def get_status(self, message_id: str) -> DeliveryStatus | None:
        result = await self.db.execute(
            select(MessageDelivery.status).where(MessageDelivery.message_id == message_id)
        )
        status = result.scalar_one_or_none()
        return DeliveryStatus(status) if status else None

    async def list_pending(self, limit: int = 100) -> list[str]:
        result = await self.db.execute(
            select(MessageDelivery.message_id)
            .where(MessageDelivery.status == DeliveryStatus.PENDING.value)
            .order_by(MessageDelivery.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())
