"""Thread registry: the unique thread for (tenant, workflow, participant)."""

from __future__ import annotations

from switchboard.application.dtos.events import ConversationEvent
from switchboard.application.interfaces.repositories import IRepositoryProvider
from switchboard.application.interfaces.services import IConversationEventPublisher
from switchboard.application.services.workflow_registry import WorkflowRegistry
from switchboard.core.constants import EVENT_THREAD_CREATED
from switchboard.domain.entities.thread import ThreadEntity
from switchboard.domain.exceptions import ResourceNotFoundException, TenantMismatchError
from switchboard.domain.value_objects.core import ThreadKey
from switchboard.shared.telemetry.logging import get_logger
from switchboard.shared.telemetry.tracing import add_span_event, traced
from switchboard.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class ThreadRegistry:
    """Resolves or lazily creates conversation threads.

    Creation is idempotent: concurrent first calls for the same key converge
    on one thread through the storage uniqueness constraint.
    """

    def __init__(
        self,
        provider: IRepositoryProvider,
        workflow_registry: WorkflowRegistry,
        publisher: IConversationEventPublisher | None = None,
    ) -> None:
        self.provider = provider
        self.workflow_registry = workflow_registry
        self.publisher = publisher

    @traced("thread_registry.resolve_or_create")
    async def resolve_or_create(
        self,
        tenant_id: str,
        workflow_id: str,
        participant_id: str,
        *,
        caller_tenant_id: str | None = None,
    ) -> ThreadEntity:
        """Return the thread for the key, creating it on first use.

        Raises:
            InvalidKeyError: a key part is empty.
            TenantMismatchError: caller_tenant_id is set and differs from tenant_id.
            WorkflowNotFoundError: workflow_id is not registered for the tenant.
        """
        key = ThreadKey(tenant_id, workflow_id, participant_id)
        if caller_tenant_id is not None and caller_tenant_id != tenant_id:
            raise TenantMismatchError(caller_tenant_id, tenant_id)
        self.workflow_registry.get_workflow(tenant_id, workflow_id)

        async with self.provider.transaction(tenant_id) as repos:
            thread, created = await repos.threads.get_or_create(key)

        if created:
            await self._mark_created(thread)
        return thread

    async def get(self, thread_id: str, *, tenant_id: str | None = None) -> ThreadEntity:
        """Return a thread by id; tenant_id, when given, must own it."""
        async with self.provider.transaction(tenant_id) as repos:
            thread = await repos.threads.get_by_id(thread_id)
        if thread is None or (tenant_id is not None and thread.tenant_id != tenant_id):
            raise ResourceNotFoundException("thread", thread_id)
        return thread

    async def find(self, tenant_id: str, workflow_id: str, participant_id: str) -> ThreadEntity | None:
        """Return the thread for the key without creating it."""
        key = ThreadKey(tenant_id, workflow_id, participant_id)
        async with self.provider.transaction(tenant_id) as repos:
            return await repos.threads.get_by_key(key)

    async def list_threads(
        self, tenant_id: str, workflow_id: str, skip: int = 0, limit: int = 100
    ) -> list[ThreadEntity]:
        async with self.provider.transaction(tenant_id) as repos:
            return await repos.threads.list_by_workflow(tenant_id, workflow_id, skip, limit)

    async def _mark_created(self, thread: ThreadEntity) -> None:
        logger.info(
            "Thread created: id=%s tenant=%s workflow=%s participant=%s",
            thread.id,
            thread.tenant_id,
            thread.workflow_id,
            thread.participant_id,
        )
        add_span_event(
            "thread.created",
            {
                "thread_id": thread.id,
                "tenant_id": thread.tenant_id,
                "workflow_id": thread.workflow_id,
            },
        )
        if self.publisher is not None:
            await self.publisher.publish(
                ConversationEvent(
                    kind=EVENT_THREAD_CREATED,
                    tenant_id=thread.tenant_id,
                    occurred_at=utc_now(),
                    thread_id=thread.id,
                    data={
                        "workflowId": thread.workflow_id,
                        "participantId": thread.participant_id,
                    },
                )
            )
