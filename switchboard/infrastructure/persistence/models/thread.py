"""Thread and thread scope ORM models.

thread: one row per (tenant_id, workflow_id, participant_id), never deleted.
thread_scope: one row per (thread, scope) with the append counter and last
hint. Postgres treats NULLs as distinct in unique constraints, so the null
scope gets its own partial unique index.
"""

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from switchboard.infrastructure.persistence.database import Base
from switchboard.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin, TenantMixin


class Thread(CuidMixin, TenantMixin, CreatedAtMixin, Base):
    __tablename__ = "thread"

    workflow_id: Mapped[str] = mapped_column(String, nullable=False)
    participant_id: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "workflow_id", "participant_id", name="uq_thread_key"),
        Index("ix_thread_tenant_workflow", "tenant_id", "workflow_id"),
    )


class ThreadScope(CuidMixin, TenantMixin, CreatedAtMixin, Base):
    __tablename__ = "thread_scope"

    thread_id: Mapped[str] = mapped_column(
        String, ForeignKey("thread.id", ondelete="CASCADE"), nullable=False, index=True
    )
    scope: Mapped[str | None] = mapped_column(String, nullable=True)
    last_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_hint: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        Index(
            "uq_thread_scope_named",
            "thread_id",
            "scope",
            unique=True,
            postgresql_where=text("scope IS NOT NULL"),
        ),
        Index(
            "uq_thread_scope_null",
            "thread_id",
            unique=True,
            postgresql_where=text("scope IS NULL"),
        ),
    )
