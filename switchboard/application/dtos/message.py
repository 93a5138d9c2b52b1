"""DTOs for appending and routing messages (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from switchboard.domain.entities.message import MessageEntity, MessagePayload
from switchboard.domain.enums import MessageDirection


@dataclass(frozen=True)
class MessageDraft:
    """Message content before it is placed and sequenced.

    authorization is the caller's opaque token; only its digest is stored.
    """

    direction: MessageDirection
    payload: MessagePayload
    hint: str | None = None
    request_id: str | None = None
    authorization: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InboundMessage:
    """Inbound event entering the router (chat, data, file, webhook or A2A).

    caller_tenant_id is the authenticated tenant when the caller is external;
    None for in-process callers already bound to tenant_id.
    """

    tenant_id: str
    workflow_id: str
    participant_id: str
    payload: MessagePayload
    scope: str | None = None
    hint: str | None = None
    request_id: str | None = None
    authorization: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    caller_tenant_id: str | None = None


@dataclass(frozen=True)
class ReceiveResult:
    """Persisted inbound message plus the replies its handler sent, in send order."""

    message: MessageEntity
    replies: list[MessageEntity] = field(default_factory=list)
    handled: bool = True
    error: str | None = None
