"""Message ORM model. Append-only; immutable after creation."""

from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Connection,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
    text as sql_text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, Mapper, mapped_column

from switchboard.domain.enums import MessageDirection, MessageType
from switchboard.infrastructure.persistence.database import Base
from switchboard.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin, TenantMixin


class Message(CuidMixin, TenantMixin, CreatedAtMixin, Base):
    """Message in one (thread, scope) bucket, ordered by sequence. Table: message."""

    __tablename__ = "message"

    thread_id: Mapped[str] = mapped_column(
        String, ForeignKey("thread.id", ondelete="CASCADE"), nullable=False
    )
    scope_id: Mapped[str] = mapped_column(
        String, ForeignKey("thread_scope.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    scope: Mapped[str | None] = mapped_column(String, nullable=True)
    workflow_id: Mapped[str] = mapped_column(String, nullable=False)
    participant_id: Mapped[str] = mapped_column(String, nullable=False)
    direction: Mapped[str] = mapped_column(String, nullable=False)
    message_type: Mapped[str] = mapped_column(String, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    data: Mapped[Any | None] = mapped_column(JSONB, nullable=True)
    message_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, nullable=False, default=dict
    )
    hint: Mapped[str | None] = mapped_column(String, nullable=True)
    request_id: Mapped[str | None] = mapped_column(String, nullable=True)
    authorization_digest: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        UniqueConstraint("scope_id", "sequence", name="uq_message_scope_sequence"),
        Index("ix_message_thread", "thread_id"),
        Index(
            "uq_message_incoming_request_id",
            "request_id",
            unique=True,
            postgresql_where=sql_text("request_id IS NOT NULL AND direction = 'incoming'"),
        ),
        CheckConstraint(
            "direction IN ({})".format(", ".join(f"'{v}'" for v in MessageDirection.values())),
            name="message_direction_check",
        ),
        CheckConstraint(
            "message_type IN ({})".format(", ".join(f"'{v}'" for v in MessageType.values())),
            name="message_type_check",
        ),
        CheckConstraint("sequence >= 1", name="message_sequence_positive"),
    )


@event.listens_for(Message, "before_update")
def _prevent_message_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: Message
) -> None:
    """Messages are append-only; updates are forbidden."""
    raise ValueError("Messages are immutable and cannot be updated. Append a new message instead.")


@event.listens_for(Message, "before_delete")
def _prevent_message_deletes(
    _mapper: Mapper[Any], _connection: Connection, _target: Message
) -> None:
    raise ValueError("Messages are immutable and cannot be deleted.")
