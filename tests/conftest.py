"""Pytest configuration and fixtures for switchboard.

API tests run create_app() against the in-memory backend with a demo agent
registry; unit tests build services directly over MemoryRepositoryProvider.
Environment is set before any switchboard import so Settings validate.
"""

import os

os.environ["DATABASE_BACKEND"] = "memory"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-switchboard-tests-only")
os.environ["REDIS_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["DELIVERY_TRANSPORT"] = "log"
os.environ.setdefault("CREATE_TENANT_SECRET", "test-create-tenant-secret")

import uuid  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from switchboard.application.dtos.webhook import WebhookResponse  # noqa: E402
from switchboard.application.services.workflow_registry import (  # noqa: E402
    AgentDefinition,
    WorkflowDefinition,
    WorkflowRegistry,
)
from switchboard.core.config import get_settings  # noqa: E402
from switchboard.core.container import ServiceContainer, build_container  # noqa: E402
from switchboard.core.limiter import limiter  # noqa: E402
from switchboard.domain.enums import WorkflowKind  # noqa: E402
from switchboard.infrastructure.memory import MemoryRepositoryProvider  # noqa: E402
from switchboard.main import create_app  # noqa: E402

_TEST_CREATE_TENANT_SECRET = os.environ["CREATE_TENANT_SECRET"]

AGENT = "Support"


class RecordingTransport:
    """Transport that keeps every transmitted message (in order)."""

    def __init__(self) -> None:
        self.sent = []

    async def transmit(self, message) -> None:
        self.sent.append(message)


async def greet(ctx) -> None:
    if ctx.text == "Hello":
        await ctx.reply("Hi")
    else:
        await ctx.reply(f"echo: {ctx.text}")


async def on_data(ctx) -> None:
    await ctx.reply_with_data({"received": ctx.data})


async def on_file(ctx) -> None:
    await ctx.reply(f"got {ctx.payload.file_name or 'file'} ({len(ctx.payload.decode())} bytes)")


async def on_webhook(ctx) -> None:
    body = ctx.payload.body or {}
    if body.get("silent"):
        return
    if body.get("fail"):
        raise RuntimeError("webhook handler failed")
    await ctx.respond(WebhookResponse.ok({"echo": body, "webhook": ctx.payload.name}))


async def ask_approval(ctx) -> None:
    await ctx.create_task("Approve refund", draft_work={"amount": 10}, actions=("approve", "reject"))


async def broken(ctx) -> None:
    raise RuntimeError("boom")


async def review_run(ctx, input):
    handle = await ctx.create_task(input["participant"], "Review draft", timeout_seconds=input.get("timeout"))
    result = await ctx.await_task(handle)
    return result.performed_action or "timeout"


def build_demo_registry() -> WorkflowRegistry:
    registry = WorkflowRegistry()
    registry.register_agent(
        AgentDefinition(
            name=AGENT,
            workflows=(
                WorkflowDefinition(
                    name="Conversational",
                    on_chat=greet,
                    on_data=on_data,
                    on_file=on_file,
                    on_webhook=on_webhook,
                ),
                WorkflowDefinition(name="Approvals", on_chat=ask_approval),
                WorkflowDefinition(name="Broken", on_chat=broken, on_webhook=broken),
                WorkflowDefinition(name="Review", kind=WorkflowKind.CUSTOM, run=review_run),
            ),
        )
    )
    return registry


@pytest.fixture(autouse=True)
def _disable_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def demo_registry() -> WorkflowRegistry:
    return build_demo_registry()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def provider() -> MemoryRepositoryProvider:
    return MemoryRepositoryProvider()


@pytest.fixture
async def container(demo_registry, provider, transport) -> ServiceContainer:
    """Fully wired services over the memory backend; closed after the test."""
    c = build_container(get_settings(), registry=demo_registry, provider=provider, transport=transport)
    yield c
    await c.close()


@pytest.fixture
async def tenant_id(container: ServiceContainer) -> str:
    created = await container.tenants.create_tenant(f"t-{uuid.uuid4().hex[:8]}", "Test Tenant")
    return created.tenant_id


@pytest.fixture
async def app(demo_registry, transport):
    application = create_app(demo_registry, provider=MemoryRepositoryProvider(), transport=transport)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def tenant(client: AsyncClient) -> dict[str, str]:
    """Create a tenant via the API; returns tenant_id, api_key and ready-made headers."""
    code = f"test-{uuid.uuid4().hex[:8]}"
    response = await client.post(
        "/api/v1/admin/tenants",
        json={"code": code, "name": f"Test Tenant {code}"},
        headers={"X-Create-Tenant-Secret": _TEST_CREATE_TENANT_SECRET},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "tenant_id": data["tenant_id"],
        "api_key": data["api_key"],
        "code": code,
        "authorization": f"Bearer {data['api_key']}",
    }
