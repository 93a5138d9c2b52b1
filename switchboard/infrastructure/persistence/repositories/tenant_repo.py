"""Tenant repository with optional caching. Returns application DTOs."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from switchboard.application.dtos.tenant import TenantResult
from switchboard.domain.enums import TenantStatus
from switchboard.domain.exceptions import ValidationException
from switchboard.infrastructure.cache.cache_protocol import CacheProtocol
from switchboard.infrastructure.cache.keys import tenant_code_key, tenant_key
from switchboard.infrastructure.persistence.models.tenant import Tenant


def _tenant_to_result(t: Tenant) -> TenantResult:
    return TenantResult(
        id=t.id, code=t.code, name=t.name, status=TenantStatus(t.status), created_at=t.created_at
    )


def _tenant_to_dict(t: Tenant) -> dict[str, Any]:
    return {
        "id": t.id,
        "code": t.code,
        "name": t.name,
        "status": t.status,
        "created_at": t.created_at.isoformat() if t.created_at else None,
    }


def _result_from_cached(cached: dict[str, Any]) -> TenantResult:
    created = cached.get("created_at")
    return TenantResult(
        id=cached["id"],
        code=cached["code"],
        name=cached["name"],
        status=TenantStatus(cached["status"]),
        created_at=datetime.fromisoformat(created) if created else None,
    )


class TenantRepository:
    """Tenant repository. Optional cache keyed by tenant_key/tenant_code_key."""

    def __init__(
        self,
        db: AsyncSession,
        cache_service: CacheProtocol | None = None,
        *,
        cache_ttl: int = 900,
    ) -> None:
        self.db = db
        self.cache = cache_service
        self.cache_ttl = cache_ttl

    async def get_by_id(self, tenant_id: str) -> TenantResult | None:
        """Get tenant by ID, from cache if available."""
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(tenant_key(tenant_id))
            if cached is not None:
                return _result_from_cached(cached)
        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            return None
        await self._store(tenant)
        return _tenant_to_result(tenant)

    async def get_by_code(self, code: str) -> TenantResult | None:
        """Get tenant by unique code, from cache if available."""
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(tenant_code_key(code))
            if cached is not None:
                return _result_from_cached(cached)
        result = await self.db.execute(select(Tenant).where(Tenant.code == code))
        tenant = result.scalar_one_or_none()
        if tenant is None:
            return None
        await self._store(tenant)
        return _tenant_to_result(tenant)

    async def create_tenant(
        self, code: str, name: str, status: TenantStatus = TenantStatus.ACTIVE
    ) -> TenantResult:
        """Create tenant; raises ValidationException on duplicate code."""
        tenant = Tenant(code=code, name=name, status=status.value)
        self.db.add(tenant)
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ValidationException(f"Tenant code '{code}' is already taken", field="code") from e
        await self.db.refresh(tenant)
        return _tenant_to_result(tenant)

    async def _store(self, tenant: Tenant) -> None:
        if self.cache and self.cache.is_available():
            d = _tenant_to_dict(tenant)
            await self.cache.set(tenant_key(tenant.id), d, ttl=self.cache_ttl)
            await self.cache.set(tenant_code_key(tenant.code), d, ttl=self.cache_ttl)
