"""Tests for the admin messaging API (send, threads, history, scopes, hint)."""

import base64

import pytest
from httpx import AsyncClient

from switchboard.core.config import get_settings
from tests.conftest import AGENT


def _base(tenant: dict) -> str:
    return f"/api/v1/admin/tenants/{tenant['tenant_id']}/messaging"


def _headers(tenant: dict) -> dict[str, str]:
    return {"Authorization": tenant["authorization"]}


async def _send(client: AsyncClient, tenant: dict, **body) -> dict:
    payload = {"agentName": AGENT, "activationName": "web", "participantId": "alice", **body}
    response = await client.post(f"{_base(tenant)}/send", json=payload, headers=_headers(tenant))
    assert response.status_code == 200, response.text
    return response.json()


async def test_send_chat_returns_reply(client: AsyncClient, tenant: dict) -> None:
    data = await _send(client, tenant, type="Chat", data="Hello")
    assert data["handled"] is True
    assert data["message"]["text"] == "Hello"
    assert data["message"]["direction"] == "incoming"
    assert data["message"]["workflowId"] == f"{AGENT}:Conversational"
    assert data["message"]["metadata"]["activationName"] == "web"
    assert [r["text"] for r in data["replies"]] == ["Hi"]
    assert data["replies"][0]["sequence"] == 2


async def test_send_chat_to_named_workflow_case_insensitive(client: AsyncClient, tenant: dict) -> None:
    data = await _send(client, tenant, type="Chat", data="refund", workflowName="approvals")
    assert data["message"]["workflowId"] == f"{AGENT}:Approvals"
    assert data["replies"][0]["hint"].startswith("task-")


async def test_send_data_replies_with_data(client: AsyncClient, tenant: dict) -> None:
    data = await _send(client, tenant, type="Data", data={"orderId": 7})
    assert data["message"]["type"] == "Data"
    assert data["replies"][0]["type"] == "Data"
    assert data["replies"][0]["data"] == {"received": {"orderId": 7}}


async def test_send_file_base64(client: AsyncClient, tenant: dict) -> None:
    content = base64.b64encode(b"hello").decode()
    data = await _send(client, tenant, type="File", data={"content": content, "fileName": "a.txt"})
    assert data["message"]["type"] == "File"
    assert data["replies"][0]["text"] == "got a.txt (5 bytes)"


@pytest.mark.parametrize("file_data", ["not base64!!", {"content": 123}, {"content": ["aGk="]}, 42])
async def test_send_file_invalid_content_returns_400(client: AsyncClient, tenant: dict, file_data) -> None:
    response = await client.post(
        f"{_base(tenant)}/send",
        json={
            "agentName": AGENT,
            "activationName": "web",
            "participantId": "alice",
            "type": "File",
            "data": file_data,
        },
        headers=_headers(tenant),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_send_webhook_type_runs_webhook_handler(client: AsyncClient, tenant: dict) -> None:
    data = await _send(client, tenant, type="Webhook", data={"x": 1}, webhookName="orders")
    assert data["handled"] is True
    assert data["message"]["type"] == "Webhook"
    assert data["message"]["data"] == {"name": "orders", "body": {"x": 1}}


async def test_failing_handler_sends_fallback(client: AsyncClient, tenant: dict) -> None:
    data = await _send(client, tenant, type="Chat", data="anything", workflowName="Broken")
    assert data["handled"] is False
    assert data["error"] == "boom"
    assert data["completed"] is True
    assert [r["text"] for r in data["replies"]] == [get_settings().fallback_message]


async def test_unknown_workflow_returns_404(client: AsyncClient, tenant: dict) -> None:
    response = await client.post(
        f"{_base(tenant)}/send",
        json={
            "agentName": AGENT,
            "activationName": "web",
            "participantId": "alice",
            "type": "Chat",
            "data": "Hello",
            "workflowName": "Missing",
        },
        headers=_headers(tenant),
    )
    assert response.status_code == 404
    assert response.json()["error"] == "WORKFLOW_NOT_FOUND"


async def test_custom_workflow_is_not_addressable(client: AsyncClient, tenant: dict) -> None:
    response = await client.post(
        f"{_base(tenant)}/send",
        json={
            "agentName": AGENT,
            "activationName": "web",
            "participantId": "alice",
            "type": "Chat",
            "data": "Hello",
            "workflowName": "Review",
        },
        headers=_headers(tenant),
    )
    assert response.status_code == 404


async def test_send_with_mismatched_tenant_returns_403(client: AsyncClient, tenant: dict) -> None:
    response = await client.post(
        "/api/v1/admin/tenants/someone-else/messaging/send",
        json={
            "agentName": AGENT,
            "activationName": "web",
            "participantId": "alice",
            "type": "Chat",
            "data": "Hello",
        },
        headers=_headers(tenant),
    )
    assert response.status_code == 403


async def test_send_missing_fields_returns_422(client: AsyncClient, tenant: dict) -> None:
    response = await client.post(
        f"{_base(tenant)}/send",
        json={"agentName": AGENT, "type": "Chat", "data": "Hello"},
        headers=_headers(tenant),
    )
    assert response.status_code == 422


async def test_history_newest_first_per_scope(client: AsyncClient, tenant: dict) -> None:
    await _send(client, tenant, type="Chat", data="Hello")
    await _send(client, tenant, type="Chat", data="Hello", scope="billing")
    await _send(client, tenant, type="Chat", data="again", scope="billing")

    response = await client.get(
        f"{_base(tenant)}/history",
        params={"agentName": AGENT, "participantId": "alice", "scope": "billing"},
        headers=_headers(tenant),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["scope"] == "billing"
    assert [m["text"] for m in data["messages"]] == ["echo: again", "again", "Hi", "Hello"]
    assert [m["sequence"] for m in data["messages"]] == [4, 3, 2, 1]

    unscoped = await client.get(
        f"{_base(tenant)}/history",
        params={"agentName": AGENT, "participantId": "alice"},
        headers=_headers(tenant),
    )
    assert [m["text"] for m in unscoped.json()["messages"]] == ["Hi", "Hello"]


async def test_history_paging(client: AsyncClient, tenant: dict) -> None:
    for text in ("one", "two", "three"):
        await _send(client, tenant, type="Chat", data=text)
    response = await client.get(
        f"{_base(tenant)}/history",
        params={"agentName": AGENT, "participantId": "alice", "page": 2, "pageSize": 2},
        headers=_headers(tenant),
    )
    data = response.json()
    assert data["page"] == 2
    assert data["pageSize"] == 2
    assert [m["text"] for m in data["messages"]] == ["echo: two", "two"]


async def test_history_unknown_participant_is_empty(client: AsyncClient, tenant: dict) -> None:
    response = await client.get(
        f"{_base(tenant)}/history",
        params={"agentName": AGENT, "participantId": "nobody"},
        headers=_headers(tenant),
    )
    assert response.status_code == 200
    assert response.json()["threadId"] is None
    assert response.json()["messages"] == []


async def test_history_rejects_page_zero(client: AsyncClient, tenant: dict) -> None:
    response = await client.get(
        f"{_base(tenant)}/history",
        params={"agentName": AGENT, "participantId": "alice", "page": 0},
        headers=_headers(tenant),
    )
    assert response.status_code == 422


async def test_scopes_and_threads(client: AsyncClient, tenant: dict) -> None:
    await _send(client, tenant, type="Chat", data="Hello")
    await _send(client, tenant, type="Chat", data="Hello", scope="billing")
    await _send(client, tenant, type="Chat", data="Hello", participantId="bob")

    scopes = await client.get(
        f"{_base(tenant)}/scopes",
        params={"agentName": AGENT, "participantId": "alice"},
        headers=_headers(tenant),
    )
    assert scopes.status_code == 200
    assert set(scopes.json()["scopes"]) == {None, "billing"}

    threads = await client.get(
        f"{_base(tenant)}/threads", params={"agentName": AGENT}, headers=_headers(tenant)
    )
    assert threads.status_code == 200
    assert {t["participantId"] for t in threads.json()} == {"alice", "bob"}


async def test_hint_tracks_task_notification(client: AsyncClient, tenant: dict) -> None:
    sent = await _send(client, tenant, type="Chat", data="refund", workflowName="Approvals", scope="orders")
    task_id = sent["replies"][0]["hint"]

    response = await client.get(
        f"{_base(tenant)}/hint",
        params={"agentName": AGENT, "participantId": "alice", "workflowName": "Approvals", "scope": "orders"},
        headers=_headers(tenant),
    )
    assert response.status_code == 200
    assert response.json()["hint"] == task_id

    other_scope = await client.get(
        f"{_base(tenant)}/hint",
        params={"agentName": AGENT, "participantId": "alice", "workflowName": "Approvals"},
        headers=_headers(tenant),
    )
    assert other_scope.json()["hint"] is None


async def test_hint_unknown_thread_returns_404(client: AsyncClient, tenant: dict) -> None:
    response = await client.get(
        f"{_base(tenant)}/hint",
        params={"agentName": AGENT, "participantId": "nobody"},
        headers=_headers(tenant),
    )
    assert response.status_code == 404
