"""Tests that /send handlers outlive the HTTP request that started them."""

import asyncio

import pytest
from httpx import AsyncClient

from switchboard.application.services.workflow_registry import AgentDefinition, WorkflowDefinition
from switchboard.core.config import get_settings
from tests.conftest import build_demo_registry


async def approve_then_confirm(ctx) -> None:
    handle = await ctx.create_task("Sign off invoice", actions=("approve", "reject"))
    result = await ctx.await_task(handle)
    await ctx.reply(f"decision: {result.performed_action}")


@pytest.fixture
def demo_registry():
    registry = build_demo_registry()
    registry.register_agent(
        AgentDefinition(name="Desk", workflows=(WorkflowDefinition(name="SignOff", on_chat=approve_then_confirm),))
    )
    return registry


@pytest.fixture
def short_send_wait(monkeypatch):
    monkeypatch.setattr(get_settings(), "send_reply_wait_seconds", 0.2)


def _base(tenant: dict) -> str:
    return f"/api/v1/admin/tenants/{tenant['tenant_id']}"


def _headers(tenant: dict) -> dict[str, str]:
    return {"Authorization": tenant["authorization"]}


async def _history_texts(client: AsyncClient, tenant: dict) -> list[str]:
    response = await client.get(
        f"{_base(tenant)}/messaging/history",
        params={"agentName": "Desk", "workflowName": "SignOff", "participantId": "gina"},
        headers=_headers(tenant),
    )
    return [m["text"] for m in response.json()["messages"]]


@pytest.mark.usefixtures("short_send_wait")
async def test_waiting_handler_returns_partial_replies_and_keeps_task_pending(
    client: AsyncClient, tenant: dict
) -> None:
    response = await client.post(
        f"{_base(tenant)}/messaging/send",
        json={
            "agentName": "Desk",
            "workflowName": "SignOff",
            "activationName": "web",
            "participantId": "gina",
            "type": "Chat",
            "data": "invoice 42 ready",
        },
        headers=_headers(tenant),
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["completed"] is False
    assert data["handled"] is True
    task_id = data["replies"][0]["hint"]

    task = await client.get(f"{_base(tenant)}/tasks/{task_id}", headers=_headers(tenant))
    assert task.json()["state"] == "pending"

    action = await client.post(
        f"{_base(tenant)}/tasks/{task_id}/actions", json={"action": "approve"}, headers=_headers(tenant)
    )
    assert action.status_code == 200

    for _ in range(100):
        texts = await _history_texts(client, tenant)
        if texts and texts[0] == "decision: approve":
            break
        await asyncio.sleep(0.01)
    assert texts[0] == "decision: approve"


async def test_fast_handler_completes_within_request(client: AsyncClient, tenant: dict) -> None:
    response = await client.post(
        f"{_base(tenant)}/messaging/send",
        json={"agentName": "Support", "activationName": "web", "participantId": "hal", "type": "Chat", "data": "Hello"},
        headers=_headers(tenant),
    )
    data = response.json()
    assert data["completed"] is True
    assert [r["text"] for r in data["replies"]] == ["Hi"]
