"""HITL task ORM model (durable wait). Terminal rows are never changed."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from switchboard.domain.enums import TaskState
from switchboard.infrastructure.persistence.database import Base
from switchboard.infrastructure.persistence.models.mixins import MultiTenantModel


class Task(MultiTenantModel, Base):
    """Durable wait. Table: task. id is the correlation id (also used as hint)."""

    __tablename__ = "task"

    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str] = mapped_column(String, nullable=False, default=TaskState.PENDING.value)
    actions: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False)
    workflow_id: Mapped[str | None] = mapped_column(String, nullable=True)
    parent_instance_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    participant_id: Mapped[str | None] = mapped_column(String, nullable=True)
    thread_id: Mapped[str | None] = mapped_column(String, nullable=True)
    scope: Mapped[str | None] = mapped_column(String, nullable=True)
    draft_work: Mapped[Any | None] = mapped_column(JSONB, nullable=True)
    timeout_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    deadline_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    survive_parent_close: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    performed_action: Mapped[str | None] = mapped_column(String, nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notification_message_id: Mapped[str | None] = mapped_column(String, nullable=True)
    task_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSONB, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_task_tenant_state", "tenant_id", "state"),
        Index("ix_task_pending_deadline", "deadline_at", postgresql_where=text("state = 'pending'")),
        CheckConstraint(
            "state IN ({})".format(", ".join(f"'{v}'" for v in TaskState.values())),
            name="task_state_check",
        ),
    )
