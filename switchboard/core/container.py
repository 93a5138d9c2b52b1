"""Service container: the composition root for conversation services.

build_container() wires storage, Redis, transport and use cases from
Settings. The container is created in the lifespan and stored on
app.state.container; API dependencies read services from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from switchboard.application.interfaces.repositories import IRepositoryProvider
from switchboard.application.interfaces.services import IConversationEventPublisher, ITransport
from switchboard.application.services.workflow_registry import WorkflowRegistry, load_agents_module
from switchboard.application.use_cases.delivery.a2a import A2AClient
from switchboard.application.use_cases.delivery.router import DeliveryRouter
from switchboard.application.use_cases.delivery.webhook_broker import WebhookBroker
from switchboard.application.use_cases.messages.hint_overlay import HintOverlay
from switchboard.application.use_cases.messages.message_store import MessageStore
from switchboard.application.use_cases.messages.scope_index import ScopeIndex
from switchboard.application.use_cases.tasks.task_service import TaskService
from switchboard.application.use_cases.tasks.wait_coordinator import DurableWaitCoordinator
from switchboard.application.use_cases.tenants.tenant_service import TenantService
from switchboard.application.use_cases.threads.thread_registry import ThreadRegistry
from switchboard.application.use_cases.workflows.runner import WorkflowRunner
from switchboard.core.config import Settings
from switchboard.infrastructure.cache.redis_cache import CacheService
from switchboard.infrastructure.security.jwt import create_api_key
from switchboard.infrastructure.transport import (
    HttpCallbackTransport,
    LogOnlyTransport,
    RedisTransport,
    RetryingTransport,
    RetryPolicy,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    provider: IRepositoryProvider
    workflow_registry: WorkflowRegistry
    transport: ITransport
    thread_registry: ThreadRegistry
    message_store: MessageStore
    scope_index: ScopeIndex
    hint_overlay: HintOverlay
    webhook_broker: WebhookBroker
    router: DeliveryRouter
    coordinator: DurableWaitCoordinator
    tasks: TaskService
    a2a: A2AClient
    runner: WorkflowRunner
    tenants: TenantService
    publisher: IConversationEventPublisher | None = None
    cache: CacheService | None = None

    async def start(self) -> None:
        """Re-arm persisted waits and push outbox records left pending."""
        await self.coordinator.recover()
        if self.settings.redeliver_on_startup:
            await self.router.redeliver_pending()

    async def close(self) -> None:
        """Stop workflows and timers, then release connections."""
        await self.runner.shutdown()
        self.webhook_broker.cancel_all()
        await self.coordinator.shutdown()
        close_transport = getattr(self.transport, "close", None)
        if close_transport is not None:
            await close_transport()
        await self.provider.close()


def build_provider(settings: Settings, cache: CacheService | None = None) -> IRepositoryProvider:
    if settings.database_backend == "memory":
        from switchboard.infrastructure.memory import MemoryRepositoryProvider

        return MemoryRepositoryProvider()
    from switchboard.infrastructure.persistence.provider import SqlRepositoryProvider

    return SqlRepositoryProvider(cache, cache_ttl=settings.cache_ttl_tenants)


def build_transport(settings: Settings, publisher_redis: object | None = None) -> ITransport:
    """Configured transport wrapped with retry/backoff."""
    inner: ITransport
    if settings.delivery_transport == "http":
        inner = HttpCallbackTransport(
            settings.delivery_callback_url or "", timeout_seconds=settings.delivery_timeout_seconds
        )
    elif settings.delivery_transport == "redis" and publisher_redis is not None:
        inner = RedisTransport(publisher_redis)  # type: ignore[arg-type]
    else:
        if settings.delivery_transport == "redis":
            logger.warning("Redis unavailable; delivery falls back to the log transport")
        inner = LogOnlyTransport()
    return RetryingTransport(inner, RetryPolicy.from_settings(settings))


def build_container(
    settings: Settings,
    *,
    registry: WorkflowRegistry | None = None,
    provider: IRepositoryProvider | None = None,
    transport: ITransport | None = None,
    publisher: IConversationEventPublisher | None = None,
    cache: CacheService | None = None,
) -> ServiceContainer:
    """Wire every conversation service. Arguments override the settings-derived parts (tests)."""
    registry = registry or WorkflowRegistry()
    if settings.agents_module:
        load_agents_module(registry, settings.agents_module)
    provider = provider or build_provider(settings, cache)
    transport = transport or build_transport(settings, getattr(publisher, "redis", None))

    thread_registry = ThreadRegistry(provider, registry, publisher)
    message_store = MessageStore(provider, publisher)
    scope_index = ScopeIndex(provider, max_page_size=settings.history_max_page_size)
    hint_overlay = HintOverlay(provider)
    webhook_broker = WebhookBroker(provider)
    coordinator = DurableWaitCoordinator(provider, publisher=publisher)
    message_store.add_listener(coordinator.on_message_appended)

    tasks_ref: list[TaskService] = []
    router = DeliveryRouter(
        thread_registry=thread_registry,
        message_store=message_store,
        scope_index=scope_index,
        hint_overlay=hint_overlay,
        workflow_registry=registry,
        transport=transport,
        webhook_broker=webhook_broker,
        fallback_message=settings.fallback_message,
        task_service_provider=lambda: tasks_ref[0] if tasks_ref else None,
    )
    tasks = TaskService(coordinator, router)
    tasks_ref.append(tasks)
    a2a = A2AClient(router)
    runner = WorkflowRunner(registry, router, tasks, coordinator, a2a)

    return ServiceContainer(
        settings=settings,
        provider=provider,
        workflow_registry=registry,
        transport=transport,
        thread_registry=thread_registry,
        message_store=message_store,
        scope_index=scope_index,
        hint_overlay=hint_overlay,
        webhook_broker=webhook_broker,
        router=router,
        coordinator=coordinator,
        tasks=tasks,
        a2a=a2a,
        runner=runner,
        tenants=TenantService(provider, create_api_key),
        publisher=publisher,
        cache=cache,
    )
