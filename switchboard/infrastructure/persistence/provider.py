"""SQL repository provider: one AsyncSession transaction per unit of work."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from switchboard.application.interfaces.repositories import Repositories
from switchboard.infrastructure.cache.cache_protocol import CacheProtocol
from switchboard.infrastructure.persistence.database import (
    dispose_engine,
    get_session_factory,
    set_tenant_context,
)
from switchboard.infrastructure.persistence.repositories import (
    DeliveryRepository,
    MessageRepository,
    ScopeBucketRepository,
    TaskRepository,
    TenantRepository,
    ThreadRepository,
    WebhookResponseRepository,
)


class SqlRepositoryProvider:
    """IRepositoryProvider over PostgreSQL.

    Each transaction() opens a session, sets the RLS tenant (or the bypass
    flag for system work), commits on success and rolls back on error.
    """

    def __init__(self, cache: CacheProtocol | None = None, *, cache_ttl: int = 900) -> None:
        self.cache = cache
        self.cache_ttl = cache_ttl

    @asynccontextmanager
    async def transaction(
        self, tenant_id: str | None = None, *, system: bool = False
    ) -> AsyncIterator[Repositories]:
        factory = get_session_factory()
        async with factory() as session:
            async with session.begin():
                await set_tenant_context(session, tenant_id, system=system)
                yield Repositories(
                    tenants=TenantRepository(session, self.cache, cache_ttl=self.cache_ttl),
                    threads=ThreadRepository(session),
                    scopes=ScopeBucketRepository(session),
                    messages=MessageRepository(session),
                    tasks=TaskRepository(session),
                    webhook_responses=WebhookResponseRepository(session),
                    deliveries=DeliveryRepository(session),
                )

    async def close(self) -> None:
        await dispose_engine()
