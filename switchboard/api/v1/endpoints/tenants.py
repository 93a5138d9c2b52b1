"""Tenant API: create a tenant (secret header) and read it back."""

import logging

from fastapi import APIRouter, HTTPException, Request

from switchboard.api.v1.dependencies import Container, CurrentTenant
from switchboard.core.config import get_settings
from switchboard.core.limiter import limit_create_tenant
from switchboard.schemas.tenant import TenantCreateRequest, TenantCreateResponse, TenantResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TenantCreateResponse, status_code=201)
@limit_create_tenant
async def create_tenant(
    request: Request,
    body: TenantCreateRequest,
    container: Container,
):
    """Create a tenant and return its API key (shown only once).

    This endpoint is protected by a shared secret header:
    - Settings must define CREATE_TENANT_SECRET.
    - Requests must include X-Create-Tenant-Secret matching that value.
    """
    settings = get_settings()
    if not settings.create_tenant_secret:
        raise HTTPException(
            status_code=503,
            detail="Tenant creation is not configured (CREATE_TENANT_SECRET is not set).",
        )

    header_secret = request.headers.get("X-Create-Tenant-Secret")
    expected = settings.create_tenant_secret.get_secret_value()
    if not header_secret or header_secret != expected:
        raise HTTPException(status_code=401, detail="Unauthorized tenant creation")

    result = await container.tenants.create_tenant(code=body.code, name=body.name)
    return TenantCreateResponse(
        tenant_id=result.tenant_id,
        tenant_code=result.tenant_code,
        tenant_name=result.tenant_name,
        api_key=result.api_key,
    )


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(tenant: CurrentTenant):
    """Return the authenticated tenant."""
    return TenantResponse(
        id=tenant.id,
        code=tenant.code,
        name=tenant.name,
        status=tenant.status,
        created_at=tenant.created_at,
    )
