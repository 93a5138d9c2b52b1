"""Tests for the HITL task API."""

from httpx import AsyncClient

from tests.conftest import _TEST_CREATE_TENANT_SECRET, AGENT


def _headers(tenant: dict) -> dict[str, str]:
    return {"Authorization": tenant["authorization"]}


def _tasks_url(tenant: dict) -> str:
    return f"/api/v1/admin/tenants/{tenant['tenant_id']}/tasks"


async def _create_task(client: AsyncClient, tenant: dict) -> str:
    response = await client.post(
        f"/api/v1/admin/tenants/{tenant['tenant_id']}/messaging/send",
        json={
            "agentName": AGENT,
            "activationName": "web",
            "participantId": "alice",
            "workflowName": "Approvals",
            "type": "Chat",
            "data": "refund please",
        },
        headers=_headers(tenant),
    )
    assert response.status_code == 200, response.text
    return response.json()["replies"][0]["hint"]


async def test_list_and_get_pending_task(client: AsyncClient, tenant: dict) -> None:
    task_id = await _create_task(client, tenant)

    listed = await client.get(_tasks_url(tenant), params={"state": "pending"}, headers=_headers(tenant))
    assert listed.status_code == 200
    assert [t["id"] for t in listed.json()] == [task_id]

    response = await client.get(f"{_tasks_url(tenant)}/{task_id}", headers=_headers(tenant))
    assert response.status_code == 200
    task = response.json()
    assert task["state"] == "pending"
    assert task["actions"] == ["approve", "reject"]
    assert task["draftWork"] == {"amount": 10}
    assert task["participantId"] == "alice"
    assert task["workflowId"] == f"{AGENT}:Approvals"


async def test_perform_action_completes_once(client: AsyncClient, tenant: dict) -> None:
    task_id = await _create_task(client, tenant)
    url = f"{_tasks_url(tenant)}/{task_id}/actions"

    first = await client.post(url, json={"action": "approve", "comment": "ok"}, headers=_headers(tenant))
    assert first.status_code == 200
    data = first.json()
    assert data["taskId"] == task_id
    assert data["state"] == "completed_by_action"
    assert data["performedAction"] == "approve"
    assert data["comment"] == "ok"
    assert data["timedOut"] is False

    second = await client.post(url, json={"action": "reject"}, headers=_headers(tenant))
    assert second.status_code == 409
    assert second.json()["error"] == "ALREADY_COMPLETED"

    pending = await client.get(_tasks_url(tenant), params={"state": "pending"}, headers=_headers(tenant))
    assert pending.json() == []


async def test_invalid_action_returns_400(client: AsyncClient, tenant: dict) -> None:
    task_id = await _create_task(client, tenant)
    response = await client.post(
        f"{_tasks_url(tenant)}/{task_id}/actions",
        json={"action": "escalate"},
        headers=_headers(tenant),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_ACTION"


async def test_unknown_task_returns_404(client: AsyncClient, tenant: dict) -> None:
    response = await client.get(f"{_tasks_url(tenant)}/task-missing", headers=_headers(tenant))
    assert response.status_code == 404


async def test_tasks_require_api_key(client: AsyncClient, tenant: dict) -> None:
    response = await client.get(_tasks_url(tenant))
    assert response.status_code == 401


async def test_action_on_another_tenants_task_returns_404(client: AsyncClient, tenant: dict) -> None:
    task_id = await _create_task(client, tenant)
    created = await client.post(
        "/api/v1/admin/tenants",
        json={"code": "rival-co", "name": "Rival Co"},
        headers={"X-Create-Tenant-Secret": _TEST_CREATE_TENANT_SECRET},
    )
    rival = created.json()
    rival_headers = {"Authorization": f"Bearer {rival['api_key']}"}
    url = f"/api/v1/admin/tenants/{rival['tenant_id']}/tasks/{task_id}"

    action = await client.post(f"{url}/actions", json={"action": "approve"}, headers=rival_headers)
    assert action.status_code == 404
    assert action.json()["error"] == "RESOURCE_NOT_FOUND"
    assert tenant["tenant_id"] not in action.text
    assert (await client.get(url, headers=rival_headers)).status_code == 404

    own = await client.get(f"{_tasks_url(tenant)}/{task_id}", headers=_headers(tenant))
    assert own.json()["state"] == "pending"
