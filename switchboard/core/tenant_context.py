"""Tenant context for RLS (row-level security).

Middleware sets the current tenant_id in this context variable so that
Postgres transactions can run SET LOCAL app.current_tenant_id. When RLS
is enabled, only rows for that tenant are visible.
"""

from contextvars import ContextVar

current_tenant_id: ContextVar[str | None] = ContextVar(
    "current_tenant_id", default=None
)


def get_tenant_id() -> str | None:
    """Return the current tenant ID if set."""
    return current_tenant_id.get()
