"""Conversation events published to subscribers (thread created, message appended)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ConversationEvent:
    kind: str
    tenant_id: str
    occurred_at: datetime
    thread_id: str | None = None
    scope: str | None = None
    message_id: str | None = None
    task_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
