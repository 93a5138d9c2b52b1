"""Thread and scope bucket repositories.

get_or_create uses INSERT ... ON CONFLICT DO NOTHING followed by a SELECT,
so concurrent callers with the same key converge to one row without
aborting the transaction.
"""

from __future__ import annotations

from sqlalchemy import select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from switchboard.domain.entities.thread import ScopeBucketEntity, ThreadEntity
from switchboard.domain.value_objects.core import ThreadKey
from switchboard.infrastructure.persistence.models.thread import Thread, ThreadScope
from switchboard.shared.utils.generators import generate_cuid


def _thread_to_entity(t: Thread) -> ThreadEntity:
    return ThreadEntity(
        id=t.id,
        tenant_id=t.tenant_id,
        workflow_id=t.workflow_id,
        participant_id=t.participant_id,
        created_at=t.created_at,
    )


def _bucket_to_entity(b: ThreadScope) -> ScopeBucketEntity:
    return ScopeBucketEntity(
        id=b.id,
        tenant_id=b.tenant_id,
        thread_id=b.thread_id,
        scope=b.scope,
        last_sequence=b.last_sequence,
        last_hint=b.last_hint,
        created_at=b.created_at,
    )


class ThreadRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_or_create(self, key: ThreadKey) -> tuple[ThreadEntity, bool]:
        new_id = generate_cuid()
        stmt = (
            pg_insert(Thread)
            .values(
                id=new_id,
                tenant_id=key.tenant_id,
                workflow_id=key.workflow_id,
                participant_id=key.participant_id,
            )
            .on_conflict_do_nothing(constraint="uq_thread_key")
            .returning(Thread.id)
        )
        inserted = (await self.db.execute(stmt)).scalar_one_or_none()
        thread = await self.get_by_key(key)
        if thread is None:
            raise RuntimeError(f"Thread {key} vanished after insert")
        return thread, inserted is not None

    async def get_by_id(self, thread_id: str) -> ThreadEntity | None:
        row = await self.db.get(Thread, thread_id)
        return _thread_to_entity(row) if row else None

    async def get_by_key(self, key: ThreadKey) -> ThreadEntity | None:
        result = await self.db.execute(
            select(Thread).where(
                Thread.tenant_id == key.tenant_id,
                Thread.workflow_id == key.workflow_id,
                Thread.participant_id == key.participant_id,
            )
        )
        row = result.scalar_one_or_none()
        return _thread_to_entity(row) if row else None

    async def list_by_workflow(
        self, tenant_id: str, workflow_id: str, skip: int = 0, limit: int = 100
    ) -> list[ThreadEntity]:
        result = await self.db.execute(
            select(Thread)
            .where(Thread.tenant_id == tenant_id, Thread.workflow_id == workflow_id)
            .order_by(Thread.created_at.desc(), Thread.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return [_thread_to_entity(t) for t in result.scalars().all()]


class ScopeBucketRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_or_create(
        self, tenant_id: str, thread_id: str, scope: str | None
    ) -> ScopeBucketEntity:
        stmt = pg_insert(ThreadScope).values(
            id=generate_cuid(), tenant_id=tenant_id, thread_id=thread_id, scope=scope, last_sequence=0
        )
        if scope is None:
            stmt = stmt.on_conflict_do_nothing(
                index_elements=["thread_id"], index_where=text("scope IS NULL")
            )
        else:
            stmt = stmt.on_conflict_do_nothing(
                index_elements=["thread_id", "scope"], index_where=text("scope IS NOT NULL")
            )
        await self.db.execute(stmt)
        bucket = await self.get(thread_id, scope)
        if bucket is None:
            raise RuntimeError(f"Scope bucket ({thread_id}, {scope!r}) vanished after insert")
        return bucket

    async def get(self, thread_id: str, scope: str | None) -> ScopeBucketEntity | None:
        scope_clause = ThreadScope.scope.is_(None) if scope is None else ThreadScope.scope == scope
        result = await self.db.execute(
            select(ThreadScope).where(ThreadScope.thread_id == thread_id, scope_clause)
        )
        row = result.scalar_one_or_none()
        return _bucket_to_entity(row) if row else None

    async def list_scopes(self, thread_id: str) -> list[str | None]:
        result = await self.db.execute(
            select(ThreadScope.scope)
            .where(ThreadScope.thread_id == thread_id)
            .order_by(ThreadScope.created_at, ThreadScope.id)
        )
        return list(result.scalars().all())

    async def next_sequence(self, bucket_id: str, hint: str | None = None) -> int:
        """Atomically increment the bucket counter; the row lock serializes appenders."""
        stmt = (
            update(ThreadScope)
            .where(ThreadScope.id == bucket_id)
            .values(
                last_sequence=ThreadScope.last_sequence + 1,
                last_hint=ThreadScope.last_hint if hint is None else hint,
            )
            .returning(ThreadScope.last_sequence)
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def set_hint(self, bucket_id: str, hint: str) -> None:
        await self.db.execute(
            update(ThreadScope).where(ThreadScope.id == bucket_id).values(last_hint=hint)
        )
