"""Hint overlay: last hint per (thread, scope)."""

from __future__ import annotations

from switchboard.application.interfaces.repositories import IRepositoryProvider
from switchboard.application.use_cases.messages.scope_index import require_thread
from switchboard.domain.exceptions import ValidationException
from switchboard.domain.value_objects.core import normalize_scope


class HintOverlay:
    """Reads and writes the hint of a (thread, scope) bucket.

    Appending a message with a non-null hint updates the bucket hint in the
    append transaction; set_hint writes it directly. Either way the latest
    write wins and null hints never clear it.
    """

    def __init__(self, provider: IRepositoryProvider) -> None:
        self.provider = provider

    async def set_hint(
        self, thread_id: str, scope: str | None, hint: str, *, tenant_id: str | None = None
    ) -> None:
        if not hint or not hint.strip():
            raise ValidationException("Hint must be a non-empty string", field="hint")
        async with self.provider.transaction(tenant_id) as repos:
            thread = await require_thread(repos, thread_id, tenant_id)
            bucket = await repos.scopes.get_or_create(thread.tenant_id, thread.id, normalize_scope(scope))
            await repos.scopes.set_hint(bucket.id, hint)

    async def get_last_hint(
        self, thread_id: str, scope: str | None, *, tenant_id: str | None = None
    ) -> str | None:
        """Most recent non-null hint in (thread, scope), or None."""
        async with self.provider.transaction(tenant_id) as repos:
            await require_thread(repos, thread_id, tenant_id)
            bucket = await repos.scopes.get(thread_id, normalize_scope(scope))
        return bucket.last_hint if bucket else None
