"""Webhook response and message delivery (outbox) ORM models."""

from datetime import datetime
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from switchboard.domain.enums import DeliveryStatus
from switchboard.infrastructure.persistence.database import Base
from switchboard.infrastructure.persistence.models.mixins import CreatedAtMixin, MultiTenantModel, TenantMixin


class WebhookResponseRecord(TenantMixin, CreatedAtMixin, Base):
    """One response per webhook request id; the primary key enforces exactly-once."""

    __tablename__ = "webhook_response"

    request_id: Mapped[str] = mapped_column(String, primary_key=True)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    body: Mapped[Any | None] = mapped_column(JSONB, nullable=True)
    headers: Mapped[dict[str, str]] = mapped_column(JSONB, nullable=False, default=dict)


class MessageDelivery(MultiTenantModel, Base):
    """Outbox row of an outgoing message. Table: message_delivery."""

    __tablename__ = "message_delivery"

    message_id: Mapped[str] = mapped_column(
        String, ForeignKey("message.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default=DeliveryStatus.PENDING.value)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_message_delivery_pending", "created_at", postgresql_where=text("status = 'pending'")),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{v}'" for v in DeliveryStatus.values())),
            name="message_delivery_status_check",
        ),
    )
