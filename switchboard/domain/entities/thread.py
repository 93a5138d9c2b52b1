"""Thread and scope bucket domain entities.

A thread is the unique conversation for (tenant, workflow, participant).
A scope bucket is one (thread, scope) partition; the null scope is its own
bucket, never a wildcard.
"""

from dataclasses import dataclass
from datetime import datetime

from switchboard.domain.value_objects.core import ThreadKey


@dataclass(frozen=True)
class ThreadEntity:
    """Conversation thread. Created lazily on first message, never deleted."""

    id: str
    tenant_id: str
    workflow_id: str
    participant_id: str
    created_at: datetime

    @property
    def key(self) -> ThreadKey:
        return ThreadKey(self.tenant_id, self.workflow_id, self.participant_id)


@dataclass(frozen=True)
class ScopeBucketEntity:
    """One (thread, scope) partition with its append counter and last hint."""

    id: str
    tenant_id: str
    thread_id: str
    scope: str | None
    last_sequence: int
    last_hint: str | None
    created_at: datetime
