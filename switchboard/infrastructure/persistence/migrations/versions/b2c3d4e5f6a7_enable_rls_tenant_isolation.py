"""enable RLS for tenant isolation

Revision ID: b2c3d4e5f6a7
Revises: a1b2c3d4e5f6
Create Date: 2026-10-18

Enables row-level security on tenant-scoped tables. Policy: only rows where
tenant_id (or id for tenant table) equals current_setting('app.current_tenant_id'),
unless the transaction set app.rls_bypass = 'on' (tenant creation, timer
recovery, redelivery). Migrations should run with a role that has BYPASSRLS.
"""

from typing import Sequence, Union

from alembic import op

revision: str = "b2c3d4e5f6a7"
down_revision: Union[str, Sequence[str], None] = "a1b2c3d4e5f6"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TENANT_SCOPED_TABLES = [
    "thread",
    "thread_scope",
    "message",
    "task",
    "webhook_response",
    "message_delivery",
]

_BYPASS = "current_setting('app.rls_bypass', true) = 'on'"


def upgrade() -> None:
    op.execute("ALTER TABLE tenant ENABLE ROW LEVEL SECURITY")
    op.execute(
        "CREATE POLICY tenant_isolation ON tenant "
        f"USING (id = current_setting('app.current_tenant_id', true) OR {_BYPASS}) "
        f"WITH CHECK (id = current_setting('app.current_tenant_id', true) OR {_BYPASS})"
    )

    for table in TENANT_SCOPED_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(
            f"CREATE POLICY tenant_isolation ON {table} "
            f"USING (tenant_id = current_setting('app.current_tenant_id', true) OR {_BYPASS}) "
            f"WITH CHECK (tenant_id = current_setting('app.current_tenant_id', true) OR {_BYPASS})"
        )


def downgrade() -> None:
    for table in reversed(TENANT_SCOPED_TABLES):
        op.execute(f"DROP POLICY IF EXISTS tenant_isolation ON {table}")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

    op.execute("DROP POLICY IF EXISTS tenant_isolation ON tenant")
    op.execute("ALTER TABLE tenant DISABLE ROW LEVEL SECURITY")
