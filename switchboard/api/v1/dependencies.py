"""Presentation-layer dependency injection.

Services come from the ServiceContainer built in the lifespan
(app.state.container); routes never construct repositories or use cases.
Tenant-scoped routes authenticate with a tenant API key (Bearer) and must
address the tenant the key was issued for.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from switchboard.application.dtos.tenant import TenantResult
from switchboard.core.container import ServiceContainer
from switchboard.core.tenant_validation import is_valid_tenant_id_format
from switchboard.domain.exceptions import (
    AuthenticationException,
    SqlNotConfiguredException,
    TenantMismatchError,
    ValidationException,
)
from switchboard.infrastructure.security.jwt import tenant_id_from_api_key

security = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    """Service container from app.state (set by the lifespan)."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise SqlNotConfiguredException()
    return container


Container = Annotated[ServiceContainer, Depends(get_container)]


def authenticate_api_key(token: str | None) -> str:
    """Return the tenant id an API key was issued for; AuthenticationException otherwise."""
    if not token:
        raise AuthenticationException("Missing API key")
    try:
        return tenant_id_from_api_key(token)
    except ValueError as e:
        raise AuthenticationException("Invalid or expired API key") from e


async def get_caller_tenant_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Tenant id from the Bearer API key."""
    return authenticate_api_key(credentials.credentials if credentials else None)


async def get_tenant(
    container: Container,
    caller_tenant_id: Annotated[str, Depends(get_caller_tenant_id)],
    tenant_id: Annotated[str, Path(description="Tenant addressed by the route")],
) -> TenantResult:
    """Validate the path tenant against the API key and load it (must be active)."""
    if not is_valid_tenant_id_format(tenant_id):
        raise ValidationException(
            "Invalid tenant ID format (use alphanumeric, hyphen, underscore; max 64 characters)",
            field="tenant_id",
        )
    if caller_tenant_id != tenant_id:
        raise TenantMismatchError(caller_tenant_id, tenant_id)
    return await container.tenants.get_active_tenant(tenant_id)


CurrentTenant = Annotated[TenantResult, Depends(get_tenant)]
