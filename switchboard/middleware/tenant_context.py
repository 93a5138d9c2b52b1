"""Tenant context middleware for RLS.

Sets the current tenant ID in context from the API key (Bearer header or
apikey query parameter) so Postgres transactions can run SET LOCAL
app.current_tenant_id. Authorization itself happens in API dependencies.
"""

from __future__ import annotations

from typing import Callable
from urllib.parse import parse_qs

from switchboard.core.tenant_context import current_tenant_id
from switchboard.core.tenant_validation import is_valid_tenant_id_format
from switchboard.infrastructure.security.jwt import tenant_id_from_api_key
from switchboard.middleware._asgi import get_header


def _api_key_from_scope(scope: dict) -> str | None:
    auth = get_header(scope, "authorization")
    if auth and auth.startswith("Bearer "):
        return auth[7:].strip()
    query = parse_qs(scope.get("query_string", b"").decode("utf-8", errors="replace"))
    values = query.get("apikey")
    return values[0] if values else None


def _tenant_id_from_scope(scope: dict) -> str | None:
    token = _api_key_from_scope(scope)
    if not token:
        return None
    try:
        tenant_id = tenant_id_from_api_key(token)
    except ValueError:
        return None
    return tenant_id if is_valid_tenant_id_format(tenant_id) else None


def TenantContextMiddleware(app: Callable) -> Callable:
    """Set tenant context (for RLS) from the API key before the route runs. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        token = current_tenant_id.set(_tenant_id_from_scope(scope))
        try:
            await app(scope, receive, send)
        finally:
            current_tenant_id.reset(token)

    return asgi_app
