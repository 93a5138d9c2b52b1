"""DTOs for tenant use cases (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime

from switchboard.domain.enums import TenantStatus


@dataclass(frozen=True)
class TenantResult:
    """Tenant read-model (result of get_by_id, get_by_code, create_tenant)."""

    id: str
    code: str
    name: str
    status: TenantStatus
    created_at: datetime | None = None


@dataclass(frozen=True)
class TenantCreationResult:
    """New tenant plus its API key. The key is only ever returned here."""

    tenant_id: str
    tenant_code: str
    tenant_name: str
    api_key: str
