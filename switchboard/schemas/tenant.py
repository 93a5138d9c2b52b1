"""Tenant API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from switchboard.domain.enums import TenantStatus


def _normalize_tenant_code(value: str) -> str:
    """Lowercase, no spaces, join with '-' (e.g. 'My Org' -> 'my-org')."""
    return "-".join(value.strip().lower().split())


class TenantCreateRequest(BaseModel):
    """Request body for creating a tenant. Code is normalized to a lowercase slug."""

    code: str = Field(
        ...,
        min_length=3,
        max_length=15,
        pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Unique tenant code (lowercase, hyphen-separated slug)",
    )
    name: str = Field(..., min_length=1, max_length=255, description="Display name")

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return _normalize_tenant_code(v) if isinstance(v, str) else v


class TenantCreateResponse(BaseModel):
    """Response after tenant creation. The API key is returned only here."""

    tenant_id: str
    tenant_code: str
    tenant_name: str
    api_key: str


class TenantResponse(BaseModel):
    id: str
    code: str
    name: str
    status: TenantStatus
    created_at: datetime | None = None
