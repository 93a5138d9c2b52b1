"""initial conversation schema: tenant, thread, thread_scope, message, task, webhook_response, message_delivery

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
    )


def _tenant_fk() -> sa.Column:
    return sa.Column(
        "tenant_id", sa.String(), sa.ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "tenant",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("status IN ('active', 'suspended')", name="tenant_status_check"),
    )
    op.create_index("ix_tenant_code", "tenant", ["code"], unique=True)
    op.create_index("ix_tenant_status", "tenant", ["status"])

    op.create_table(
        "thread",
        sa.Column("id", sa.String(), primary_key=True),
        _tenant_fk(),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("participant_id", sa.String(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("tenant_id", "workflow_id", "participant_id", name="uq_thread_key"),
    )
    op.create_index("ix_thread_tenant_id", "thread", ["tenant_id"])
    op.create_index("ix_thread_tenant_workflow", "thread", ["tenant_id", "workflow_id"])

    op.create_table(
        "thread_scope",
        sa.Column("id", sa.String(), primary_key=True),
        _tenant_fk(),
        sa.Column("thread_id", sa.String(), sa.ForeignKey("thread.id", ondelete="CASCADE"), nullable=False),
        sa.Column("scope", sa.String(), nullable=True),
        sa.Column("last_sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_hint", sa.String(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_thread_scope_tenant_id", "thread_scope", ["tenant_id"])
    op.create_index("ix_thread_scope_thread_id", "thread_scope", ["thread_id"])
    op.create_index(
        "uq_thread_scope_named",
        "thread_scope",
        ["thread_id", "scope"],
        unique=True,
        postgresql_where=sa.text("scope IS NOT NULL"),
    )
    op.create_index(
        "uq_thread_scope_null",
        "thread_scope",
        ["thread_id"],
        unique=True,
        postgresql_where=sa.text("scope IS NULL"),
    )

    op.create_table(
        "message",
        sa.Column("id", sa.String(), primary_key=True),
        _tenant_fk(),
        sa.Column("thread_id", sa.String(), sa.ForeignKey("thread.id", ondelete="CASCADE"), nullable=False),
        sa.Column("scope_id", sa.String(), sa.ForeignKey("thread_scope.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("scope", sa.String(), nullable=True),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("participant_id", sa.String(), nullable=False),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("message_type", sa.String(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False, server_default=""),
        sa.Column("data", postgresql.JSONB(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("hint", sa.String(), nullable=True),
        sa.Column("request_id", sa.String(), nullable=True),
        sa.Column("authorization_digest", sa.String(64), nullable=True),
        _created_at(),
        sa.UniqueConstraint("scope_id", "sequence", name="uq_message_scope_sequence"),
        sa.CheckConstraint("direction IN ('incoming', 'outgoing')", name="message_direction_check"),
        sa.CheckConstraint(
            "message_type IN ('Chat', 'Data', 'File', 'Webhook', 'Handoff')", name="message_type_check"
        ),
        sa.CheckConstraint("sequence >= 1", name="message_sequence_positive"),
    )
    op.create_index("ix_message_tenant_id", "message", ["tenant_id"])
    op.create_index("ix_message_thread", "message", ["thread_id"])
    op.create_index(
        "uq_message_incoming_request_id",
        "message",
        ["request_id"],
        unique=True,
        postgresql_where=sa.text("request_id IS NOT NULL AND direction = 'incoming'"),
    )

    op.create_table(
        "task",
        sa.Column("id", sa.String(), primary_key=True),
        _tenant_fk(),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("state", sa.String(), nullable=False),
        sa.Column("actions", postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=True),
        sa.Column("parent_instance_id", sa.String(), nullable=True),
        sa.Column("participant_id", sa.String(), nullable=True),
        sa.Column("thread_id", sa.String(), nullable=True),
        sa.Column("scope", sa.String(), nullable=True),
        sa.Column("draft_work", postgresql.JSONB(), nullable=True),
        sa.Column("timeout_seconds", sa.Float(), nullable=True),
        sa.Column("deadline_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("survive_parent_close", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("performed_action", sa.String(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notification_message_id", sa.String(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "state IN ('pending', 'completed_by_action', 'completed_by_timeout', 'abandoned')",
            name="task_state_check",
        ),
    )
    op.create_index("ix_task_tenant_id", "task", ["tenant_id"])
    op.create_index("ix_task_parent_instance_id", "task", ["parent_instance_id"])
    op.create_index("ix_task_tenant_state", "task", ["tenant_id", "state"])
    op.create_index(
        "ix_task_pending_deadline", "task", ["deadline_at"], postgresql_where=sa.text("state = 'pending'")
    )

    op.create_table(
        "webhook_response",
        sa.Column("request_id", sa.String(), primary_key=True),
        _tenant_fk(),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("body", postgresql.JSONB(), nullable=True),
        sa.Column("headers", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        _created_at(),
    )
    op.create_index("ix_webhook_response_tenant_id", "webhook_response", ["tenant_id"])

    op.create_table(
        "message_delivery",
        sa.Column("id", sa.String(), primary_key=True),
        _tenant_fk(),
        sa.Column("message_id", sa.String(), sa.ForeignKey("message.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("message_id", name="uq_message_delivery_message_id"),
        sa.CheckConstraint("status IN ('pending', 'sent', 'failed')", name="message_delivery_status_check"),
    )
    op.create_index("ix_message_delivery_tenant_id", "message_delivery", ["tenant_id"])
    op.create_index(
        "ix_message_delivery_pending",
        "message_delivery",
        ["created_at"],
        postgresql_where=sa.text("status = 'pending'"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("message_delivery")
    op.drop_table("webhook_response")
    op.drop_table("task")
    op.drop_table("message")
    op.drop_table("thread_scope")
    op.drop_table("thread")
    op.drop_table("tenant")
