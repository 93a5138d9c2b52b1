"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from switchboard.domain.enums import DeliveryStatus, TaskState, TenantStatus

if TYPE_CHECKING:
    from switchboard.application.dtos.message import MessageDraft
    from switchboard.application.dtos.tenant import TenantResult
    from switchboard.application.dtos.webhook import WebhookResponse
    from switchboard.domain.entities.message import MessageEntity
    from switchboard.domain.entities.task import TaskEntity
    from switchboard.domain.entities.thread import ScopeBucketEntity, ThreadEntity
    from switchboard.domain.value_objects.core import ThreadKey


class ITenantRepository(Protocol):
    """Protocol for tenant repository (DIP)."""

    async def get_by_id(self, tenant_id: str) -> TenantResult | None:
        """Return tenant by ID."""

    async def get_by_code(self, code: str) -> TenantResult | None:
        """Return tenant by unique code."""

    async def create_tenant(
        self, code: str, name: str, status: TenantStatus = TenantStatus.ACTIVE
    ) -> TenantResult:
        """Create a tenant; raises ValidationException when the code is taken."""


class IThreadRepository(Protocol):
    """Protocol for thread repository. Threads are never updated or deleted."""

    async def get_or_create(self, key: ThreadKey) -> tuple[ThreadEntity, bool]:
        """Return the unique thread for key and whether this call created it.

        Concurrent callers with the same key converge to one thread.
        """

    async def get_by_id(self, thread_id: str) -> ThreadEntity | None:
        """Return thread by ID."""

    async def get_by_key(self, key: ThreadKey) -> ThreadEntity | None:
        """Return thread by (tenant, workflow, participant) without creating it."""

    async def list_by_workflow(
        self, tenant_id: str, workflow_id: str, skip: int = 0, limit: int = 100
    ) -> list[ThreadEntity]:
        """Return threads of a workflow (newest first)."""


class IScopeBucketRepository(Protocol):
    """Protocol for (thread, scope) buckets, their sequence counter and last hint."""

    async def get_or_create(
        self, tenant_id: str, thread_id: str, scope: str | None
    ) -> ScopeBucketEntity:
        """Return the bucket for (thread, scope), creating it on first use."""

    async def get(self, thread_id: str, scope: str | None) -> ScopeBucketEntity | None:
        """Return the bucket or None when the scope was never used."""

    async def list_scopes(self, thread_id: str) -> list[str | None]:
        """Return the scope values used by a thread, in first-use order."""

    async def next_sequence(self, bucket_id: str, hint: str | None = None) -> int:
        """Atomically increment and return the bucket counter.

        A non-null hint is recorded as the bucket's last hint in the same step.
        """

    async def set_hint(self, bucket_id: str, hint: str) -> None:
        """Overwrite the bucket's last hint."""


class IMessageRepository(Protocol):
    """Protocol for the append-only message log. No update or delete."""

    async def append(
        self,
        thread: ThreadEntity,
        bucket: ScopeBucketEntity,
        draft: MessageDraft,
        sequence: int,
    ) -> MessageEntity:
        """Persist a message at the given bucket sequence."""

    async def get_by_id(self, message_id: str) -> MessageEntity | None:
        """Return message by ID."""

    async def get_by_request_id(self, request_id: str) -> MessageEntity | None:
        """Return the incoming message that carried request_id (webhooks)."""

    async def get_page(self, bucket_id: str, skip: int = 0, limit: int = 20) -> list[MessageEntity]:
        """Return messages of a bucket, newest first."""


class ITaskRepository(Protocol):
    """Protocol for durable wait (HITL task) repository."""

    async def create(self, task: TaskEntity) -> TaskEntity:
        """Persist a new PENDING task."""

    async def get_by_id(self, task_id: str) -> TaskEntity | None:
        """Return task by ID."""

    async def transition(self, task: TaskEntity) -> bool:
        """Persist task's terminal state only if the stored task is still PENDING.

        Returns False when another transition won.
        """

    async def link_notification(self, task_id: str, message_id: str) -> bool:
        """Record the notification message of a task once; False when already linked."""

    async def list_pending(self) -> list[TaskEntity]:
        """Return all PENDING tasks (startup recovery)."""

    async def list_by_parent(
        self, parent_instance_id: str, state: TaskState | None = TaskState.PENDING
    ) -> list[TaskEntity]:
        """Return tasks created by a workflow instance."""

    async def list_by_tenant(
        self,
        tenant_id: str,
        state: TaskState | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[TaskEntity]:
        """Return tasks of a tenant (newest first), optionally filtered by state."""


class IWebhookResponseRepository(Protocol):
    """Protocol for the exactly-once webhook response record."""

    async def record(self, tenant_id: str, request_id: str, response: WebhookResponse) -> None:
        """Store the response; raises DuplicateResponseError when one exists."""

    async def get(self, request_id: str) -> WebhookResponse | None:
        """Return the stored response for request_id."""


class IDeliveryRepository(Protocol):
    """Protocol for the outgoing message outbox."""

    async def create_pending(self, message: MessageEntity) -> None:
        """Record a PENDING delivery for a just-appended outgoing message."""

    async def mark_sent(self, message_id: str, attempts: int) -> None:
        """Mark delivered."""

    async def mark_failed(self, message_id: str, error: str, attempts: int) -> None:
        """Mark failed after the transport gave up."""

    async def get_status(self, message_id: str) -> DeliveryStatus | None:
        """Return delivery status, None for messages without an outbox record."""

    async def list_pending(self, limit: int = 100) -> list[str]:
        """Return message ids still PENDING (oldest first)."""


@dataclass(frozen=True)
class Repositories:
    """Repositories bound to one transaction."""

    tenants: ITenantRepository
    threads: IThreadRepository
    scopes: IScopeBucketRepository
    messages: IMessageRepository
    tasks: ITaskRepository
    webhook_responses: IWebhookResponseRepository
    deliveries: IDeliveryRepository


class IRepositoryProvider(Protocol):
    """Opens a transaction and yields repositories bound to it.

    Commits on normal exit and rolls back on exception. tenant_id binds
    row-level security; system=True is for cross-tenant maintenance
    (startup recovery, redelivery).
    """

    def transaction(
        self, tenant_id: str | None = None, *, system: bool = False
    ) -> AbstractAsyncContextManager[Repositories]:
        """Return an async context manager yielding Repositories."""

    async def close(self) -> None:
        """Release pooled resources."""
