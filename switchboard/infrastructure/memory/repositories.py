"""In-memory storage backend (database_backend = "memory").

Implements the repository protocols over plain dicts for development and
tests. One asyncio.Lock guards each transaction, so appends, sequence
increments and task compare-and-set are atomic within the process.
Writes are not rolled back when a transaction raises.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace

from switchboard.application.dtos.message import MessageDraft
from switchboard.application.dtos.tenant import TenantResult
from switchboard.application.dtos.webhook import WebhookResponse
from switchboard.application.interfaces.repositories import Repositories
from switchboard.domain.entities.message import MessageEntity
from switchboard.domain.entities.task import TaskEntity
from switchboard.domain.entities.thread import ScopeBucketEntity, ThreadEntity
from switchboard.domain.enums import DeliveryStatus, MessageDirection, TaskState, TenantStatus
from switchboard.domain.exceptions import DuplicateResponseError
from switchboard.domain.value_objects.core import ThreadKey
from switchboard.shared.utils.datetime import utc_now
from switchboard.shared.utils.generators import digest_token, generate_cuid


@dataclass
class _Delivery:
    message_id: str
    status: DeliveryStatus
    attempts: int = 0
    last_error: str | None = None


@dataclass
class MemoryState:
    """All rows of the in-memory backend."""

    tenants: dict[str, TenantResult] = field(default_factory=dict)
    threads: dict[str, ThreadEntity] = field(default_factory=dict)
    thread_keys: dict[ThreadKey, str] = field(default_factory=dict)
    buckets: dict[str, ScopeBucketEntity] = field(default_factory=dict)
    bucket_keys: dict[tuple[str, str | None], str] = field(default_factory=dict)
    messages: dict[str, MessageEntity] = field(default_factory=dict)
    bucket_messages: dict[str, list[str]] = field(default_factory=dict)
    request_ids: dict[str, str] = field(default_factory=dict)
    tasks: dict[str, TaskEntity] = field(default_factory=dict)
    webhook_responses: dict[str, tuple[str, WebhookResponse]] = field(default_factory=dict)
    deliveries: dict[str, _Delivery] = field(default_factory=dict)


class MemoryTenantRepository:
    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def get_by_id(self, tenant_id: str) -> TenantResult | None:
        return self.state.tenants.get(tenant_id)

    async def get_by_code(self, code: str) -> TenantResult | None:
        return next((t for t in self.state.tenants.values() if t.code == code), None)

    async def create_tenant(
        self, code: str, name: str, status: TenantStatus = TenantStatus.ACTIVE
    ) -> TenantResult:
        tenant = TenantResult(id=generate_cuid(), code=code, name=name, status=status, created_at=utc_now())
        self.state.tenants[tenant.id] = tenant
        return tenant


class MemoryThreadRepository:
    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def get_or_create(self, key: ThreadKey) -> tuple[ThreadEntity, bool]:
        existing = self.state.thread_keys.get(key)
        if existing is not None:
            return self.state.threads[existing], False
        thread = ThreadEntity(
            id=generate_cuid(),
            tenant_id=key.tenant_id,
            workflow_id=key.workflow_id,
            participant_id=key.participant_id,
            created_at=utc_now(),
        )
        self.state.threads[thread.id] = thread
        self.state.thread_keys[key] = thread.id
        return thread, True

    async def get_by_id(self, thread_id: str) -> ThreadEntity | None:
        return self.state.threads.get(thread_id)

    async def get_by_key(self, key: ThreadKey) -> ThreadEntity | None:
        thread_id = self.state.thread_keys.get(key)
        return self.state.threads.get(thread_id) if thread_id else None

    async def list_by_workflow(
        self, tenant_id: str, workflow_id: str, skip: int = 0, limit: int = 100
    ) -> list[ThreadEntity]:
        rows = [
            t
            for t in self.state.threads.values()
            if t.tenant_id == tenant_id and t.workflow_id == workflow_id
        ]
        rows.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return rows[skip : skip + limit]


class MemoryScopeBucketRepository:
    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def get_or_create(
        self, tenant_id: str, thread_id: str, scope: str | None
    ) -> ScopeBucketEntity:
        bucket_id = self.state.bucket_keys.get((thread_id, scope))
        if bucket_id is not None:
            return self.state.buckets[bucket_id]
        bucket = ScopeBucketEntity(
            id=generate_cuid(),
            tenant_id=tenant_id,
            thread_id=thread_id,
            scope=scope,
            last_sequence=0,
            last_hint=None,
            created_at=utc_now(),
        )
        self.state.buckets[bucket.id] = bucket
        self.state.bucket_keys[(thread_id, scope)] = bucket.id
        self.state.bucket_messages[bucket.id] = []
        return bucket

    async def get(self, thread_id: str, scope: str | None) -> ScopeBucketEntity | None:
        bucket_id = self.state.bucket_keys.get((thread_id, scope))
        return self.state.buckets.get(bucket_id) if bucket_id else None

    async def list_scopes(self, thread_id: str) -> list[str | None]:
        buckets = [b for b in self.state.buckets.values() if b.thread_id == thread_id]
        buckets.sort(key=lambda b: b.created_at)
        return [b.scope for b in buckets]

    async def next_sequence(self, bucket_id: str, hint: str | None = None) -> int:
        bucket = self.state.buckets[bucket_id]
        bucket = replace(
            bucket,
            last_sequence=bucket.last_sequence + 1,
            last_hint=hint if hint is not None else bucket.last_hint,
        )
        self.state.buckets[bucket_id] = bucket
        return bucket.last_sequence

    async def set_hint(self, bucket_id: str, hint: str) -> None:
        self.state.buckets[bucket_id] = replace(self.state.buckets[bucket_id], last_hint=hint)


class MemoryMessageRepository:
    """Append-only; update and delete are not supported."""

    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def append(
        self,
        thread: ThreadEntity,
        bucket: ScopeBucketEntity,
        draft: MessageDraft,
        sequence: int,
    ) -> MessageEntity:
        message = MessageEntity(
            id=generate_cuid(),
            tenant_id=thread.tenant_id,
            thread_id=thread.id,
            scope_bucket_id=bucket.id,
            workflow_id=thread.workflow_id,
            participant_id=thread.participant_id,
            scope=bucket.scope,
            direction=draft.direction,
            payload=draft.payload,
            sequence=sequence,
            created_at=utc_now(),
            hint=draft.hint,
            request_id=draft.request_id,
            authorization_digest=digest_token(draft.authorization),
            metadata=dict(draft.metadata),
        )
        self.state.messages[message.id] = message
        self.state.bucket_messages.setdefault(bucket.id, []).append(message.id)
        if draft.request_id and draft.direction is MessageDirection.INCOMING:
            self.state.request_ids.setdefault(draft.request_id, message.id)
        return message

    async def get_by_id(self, message_id: str) -> MessageEntity | None:
        return self.state.messages.get(message_id)

    async def get_by_request_id(self, request_id: str) -> MessageEntity | None:
        message_id = self.state.request_ids.get(request_id)
        return self.state.messages.get(message_id) if message_id else None

    async def get_page(self, bucket_id: str, skip: int = 0, limit: int = 20) -> list[MessageEntity]:
        ids = self.state.bucket_messages.get(bucket_id, [])
        newest_first = list(reversed(ids))[skip : skip + limit]
        return [self.state.messages[i] for i in newest_first]


class MemoryTaskRepository:
    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def create(self, task: TaskEntity) -> TaskEntity:
        self.state.tasks[task.id] = task
        return task

    async def get_by_id(self, task_id: str) -> TaskEntity | None:
        return self.state.tasks.get(task_id)

    async def transition(self, task: TaskEntity) -> bool:
        current = self.state.tasks.get(task.id)
        if current is None or current.state is not TaskState.PENDING:
            return False
        self.state.tasks[task.id] = replace(
            task, notification_message_id=current.notification_message_id
        )
        return True

    async def link_notification(self, task_id: str, message_id: str) -> bool:
        current = self.state.tasks.get(task_id)
        if current is None or current.notification_message_id is not None:
            return False
        self.state.tasks[task_id] = replace(current, notification_message_id=message_id)
        return True

    async def list_pending(self) -> list[TaskEntity]:
        return [t for t in self.state.tasks.values() if t.state is TaskState.PENDING]

    async def list_by_parent(
        self, parent_instance_id: str, state: TaskState | None = TaskState.PENDING
    ) -> list[TaskEntity]:
        return [
            t
            for t in self.state.tasks.values()
            if t.parent_instance_id == parent_instance_id and (state is None or t.state is state)
        ]

    async def list_by_tenant(
        self,
        tenant_id: str,
        state: TaskState | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[TaskEntity]:
        rows = [
            t
            for t in self.state.tasks.values()
            if t.tenant_id == tenant_id and (state is None or t.state is state)
        ]
        rows.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return rows[skip : skip + limit]


class MemoryWebhookResponseRepository:
    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def record(self, tenant_id: str, request_id: str, response: WebhookResponse) -> None:
        if request_id in self.state.webhook_responses:
            raise DuplicateResponseError(request_id)
        self.state.webhook_responses[request_id] = (tenant_id, response)

    async def get(self, request_id: str) -> WebhookResponse | None:
        row = self.state.webhook_responses.get(request_id)
        return row[1] if row else None


class MemoryDeliveryRepository:
    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def create_pending(self, message: MessageEntity) -> None:
        self.state.deliveries[message.id] = _Delivery(message.id, DeliveryStatus.PENDING)

    async def mark_sent(self, message_id: str, attempts: int) -> None:
        row = self.state.deliveries.get(message_id)
        if row is not None:
            row.status = DeliveryStatus.SENT
            row.attempts += attempts

    async def mark_failed(self, message_id: str, error: str, attempts: int) -> None:
        row = self.state.deliveries.get(message_id)
        if row is not None:
            row.status = DeliveryStatus.FAILED
            row.attempts += attempts
            row.last_error = error

    async def get_status(self, message_id: str) -> DeliveryStatus | None:
        row = self.state.deliveries.get(message_id)
        return row.status if row else None

    async def list_pending(self, limit: int = 100) -> list[str]:
        return [
            d.message_id for d in self.state.deliveries.values() if d.status is DeliveryStatus.PENDING
        ][:limit]


class MemoryRepositoryProvider:
    """IRepositoryProvider over MemoryState. Transactions are serialized."""

    def __init__(self, state: MemoryState | None = None) -> None:
        self.state = state or MemoryState()
        self._lock = asyncio.Lock()
        self._repos = Repositories(
            tenants=MemoryTenantRepository(self.state),
            threads=MemoryThreadRepository(self.state),
            scopes=MemoryScopeBucketRepository(self.state),
            messages=MemoryMessageRepository(self.state),
            tasks=MemoryTaskRepository(self.state),
            webhook_responses=MemoryWebhookResponseRepository(self.state),
            deliveries=MemoryDeliveryRepository(self.state),
        )

    @asynccontextmanager
    async def transaction(
        self, tenant_id: str | None = None, *, system: bool = False
    ) -> AsyncIterator[Repositories]:
        async with self._lock:
            yield self._repos

    async def close(self) -> None:
        return None
