"""Tests for tenant endpoints (create with secret header, read with API key)."""

import pytest
from httpx import AsyncClient

from tests.conftest import _TEST_CREATE_TENANT_SECRET

SECRET_HEADERS = {"X-Create-Tenant-Secret": _TEST_CREATE_TENANT_SECRET}


async def test_create_tenant_missing_body_returns_422(client: AsyncClient) -> None:
    response = await client.post("/api/v1/admin/tenants", json={}, headers=SECRET_HEADERS)
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.parametrize(
    "body",
    [
        {"code": "", "name": "Acme Corp"},
        {"code": "ab", "name": "Acme Corp"},
        {"code": "acme_corp", "name": "Acme Corp"},
        {"code": "acme", "name": ""},
    ],
)
async def test_create_tenant_invalid_body_returns_422(client: AsyncClient, body: dict) -> None:
    response = await client.post("/api/v1/admin/tenants", json=body, headers=SECRET_HEADERS)
    assert response.status_code == 422


async def test_create_tenant_wrong_secret_returns_401(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/admin/tenants",
        json={"code": "acme", "name": "Acme Corp"},
        headers={"X-Create-Tenant-Secret": "not-the-secret"},
    )
    assert response.status_code == 401


async def test_create_tenant_without_secret_returns_401(client: AsyncClient) -> None:
    response = await client.post("/api/v1/admin/tenants", json={"code": "acme", "name": "Acme Corp"})
    assert response.status_code == 401


async def test_create_tenant_returns_api_key(client: AsyncClient) -> None:
    """Code is normalized: trimmed, lowercased, spaces to hyphens."""
    response = await client.post(
        "/api/v1/admin/tenants",
        json={"code": " Acme Labs ", "name": "Acme Labs"},
        headers=SECRET_HEADERS,
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["tenant_code"] == "acme-labs"
    assert data["tenant_name"] == "Acme Labs"
    assert data["tenant_id"]
    assert data["api_key"]


async def test_create_tenant_duplicate_code_returns_400(client: AsyncClient, tenant: dict) -> None:
    response = await client.post(
        "/api/v1/admin/tenants",
        json={"code": tenant["code"], "name": "Again"},
        headers=SECRET_HEADERS,
    )
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "code"


async def test_get_tenant_with_api_key(client: AsyncClient, tenant: dict) -> None:
    response = await client.get(
        f"/api/v1/admin/tenants/{tenant['tenant_id']}",
        headers={"Authorization": tenant["authorization"]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == tenant["tenant_id"]
    assert data["code"] == tenant["code"]
    assert data["status"] == "active"


async def test_get_tenant_without_api_key_returns_401(client: AsyncClient, tenant: dict) -> None:
    response = await client.get(f"/api/v1/admin/tenants/{tenant['tenant_id']}")
    assert response.status_code == 401
    assert response.json()["error"] == "AUTHENTICATION_ERROR"


async def test_get_tenant_with_garbage_key_returns_401(client: AsyncClient, tenant: dict) -> None:
    response = await client.get(
        f"/api/v1/admin/tenants/{tenant['tenant_id']}",
        headers={"Authorization": "Bearer not-a-key"},
    )
    assert response.status_code == 401


async def test_other_tenants_key_returns_403(client: AsyncClient, tenant: dict) -> None:
    other = await client.post(
        "/api/v1/admin/tenants",
        json={"code": "other-co", "name": "Other Co"},
        headers=SECRET_HEADERS,
    )
    other_key = other.json()["api_key"]
    response = await client.get(
        f"/api/v1/admin/tenants/{tenant['tenant_id']}",
        headers={"Authorization": f"Bearer {other_key}"},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "TENANT_MISMATCH"
