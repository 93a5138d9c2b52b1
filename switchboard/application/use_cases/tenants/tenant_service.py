"""Tenant administration: create tenants and issue their API keys."""

from __future__ import annotations

from collections.abc import Callable

from switchboard.application.dtos.tenant import TenantCreationResult, TenantResult
from switchboard.application.interfaces.repositories import IRepositoryProvider
from switchboard.domain.enums import TenantStatus
from switchboard.domain.exceptions import TenantNotFoundException, ValidationException
from switchboard.domain.value_objects.core import TenantCode
from switchboard.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class TenantService:
    def __init__(self, provider: IRepositoryProvider, issue_api_key: Callable[[str], str]) -> None:
        self.provider = provider
        self._issue_api_key = issue_api_key

    async def create_tenant(self, code: str, name: str) -> TenantCreationResult:
        """Create an ACTIVE tenant and return it with a fresh API key.

        Raises:
            ValidationException: invalid code or name, or code already taken.
        """
        tenant_code = TenantCode(code)
        if not name or not name.strip():
            raise ValidationException("Tenant name is required", field="name")
        async with self.provider.transaction(system=True) as repos:
            if await repos.tenants.get_by_code(tenant_code.value):
                raise ValidationException(f"Tenant code '{code}' is already in use", field="code")
            tenant = await repos.tenants.create_tenant(tenant_code.value, name.strip())
        logger.info("Tenant created: id=%s code=%s", tenant.id, tenant.code)
        return TenantCreationResult(
            tenant_id=tenant.id,
            tenant_code=tenant.code,
            tenant_name=tenant.name,
            api_key=self._issue_api_key(tenant.id),
        )

    async def get_tenant(self, tenant_id: str) -> TenantResult:
        async with self.provider.transaction(tenant_id) as repos:
            tenant = await repos.tenants.get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFoundException(tenant_id)
        return tenant

    async def get_active_tenant(self, tenant_id: str) -> TenantResult:
        """Tenant that may route messages; suspended tenants count as not found."""
        tenant = await self.get_tenant(tenant_id)
        if tenant.status != TenantStatus.ACTIVE:
            raise TenantNotFoundException(tenant_id)
        return tenant
