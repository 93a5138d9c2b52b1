"""Scope index: (thread, scope) buckets and paged, scope-isolated history."""

from __future__ import annotations

from switchboard.application.interfaces.repositories import IRepositoryProvider, Repositories
from switchboard.domain.entities.message import MessageEntity
from switchboard.domain.entities.thread import ScopeBucketEntity, ThreadEntity
from switchboard.domain.exceptions import ResourceNotFoundException, ValidationException
from switchboard.domain.value_objects.core import normalize_scope
from switchboard.shared.telemetry.tracing import traced


async def require_thread(
    repos: Repositories, thread_id: str, tenant_id: str | None = None
) -> ThreadEntity:
    """Load a thread inside an open transaction; tenant_id, when given, must own it."""
    thread = await repos.threads.get_by_id(thread_id)
    if thread is None or (tenant_id is not None and thread.tenant_id != tenant_id):
        raise ResourceNotFoundException("thread", thread_id)
    return thread


class ScopeIndex:
    """Places messages into scope buckets and reads bucket history.

    The null scope is a bucket of its own; history for scope S never
    includes messages of any other scope value.
    """

    def __init__(self, provider: IRepositoryProvider, *, max_page_size: int = 100) -> None:
        self.provider = provider
        self.max_page_size = max_page_size

    async def place(
        self, thread_id: str, scope: str | None, *, tenant_id: str | None = None
    ) -> ScopeBucketEntity:
        """Return the bucket for (thread, scope), creating it on first use."""
        async with self.provider.transaction(tenant_id) as repos:
            thread = await require_thread(repos, thread_id, tenant_id)
            return await repos.scopes.get_or_create(thread.tenant_id, thread.id, normalize_scope(scope))

    @traced("scope_index.history")
    async def history(
        self,
        thread_id: str,
        scope: str | None,
        page: int = 1,
        page_size: int = 20,
        *,
        tenant_id: str | None = None,
    ) -> list[MessageEntity]:
        """Return one page of (thread, scope) messages, newest first.

        Pages are 1-indexed; page_size is capped at max_page_size. A page past
        the end is an empty list.

        Raises:
            ValidationException: page or page_size below 1.
            ResourceNotFoundException: unknown thread.
        """
        if page < 1:
            raise ValidationException("page must be >= 1", field="page")
        if page_size < 1:
            raise ValidationException("page_size must be >= 1", field="page_size")
        size = min(page_size, self.max_page_size)
        async with self.provider.transaction(tenant_id) as repos:
            await require_thread(repos, thread_id, tenant_id)
            bucket = await repos.scopes.get(thread_id, normalize_scope(scope))
            if bucket is None:
                return []
            return await repos.messages.get_page(bucket.id, skip=(page - 1) * size, limit=size)

    async def list_scopes(self, thread_id: str, *, tenant_id: str | None = None) -> list[str | None]:
        async with self.provider.transaction(tenant_id) as repos:
            await require_thread(repos, thread_id, tenant_id)
            return await repos.scopes.list_scopes(thread_id)
