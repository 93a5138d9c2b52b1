"""Admin messaging API schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from switchboard.application.dtos.message import ReceiveResult
from switchboard.domain.entities.message import MessageEntity
from switchboard.domain.entities.thread import ThreadEntity
from switchboard.schemas.base import CamelModel


class SendMessageRequest(CamelModel):
    """Body of POST /admin/tenants/{tenantId}/messaging/send.

    type selects the payload. File requires base64 content in data, either a
    plain string or {content, fileName?, contentType?}. Webhook delivers data
    as the body of a webhook named webhookName (defaults to activationName).
    """

    agent_name: str = Field(..., min_length=1)
    activation_name: str = Field(..., min_length=1)
    participant_id: str = Field(..., min_length=1)
    type: Literal["Chat", "Data", "File", "Webhook"]
    data: Any
    text: str | None = None
    workflow_name: str | None = Field(default=None, description="Built-in workflow; default from settings")
    webhook_name: str | None = None
    scope: str | None = None
    hint: str | None = None
    authorization: str | None = None


class MessageResponse(CamelModel):
    id: str
    thread_id: str
    workflow_id: str
    participant_id: str
    scope: str | None
    sequence: int
    direction: str
    type: str
    text: str
    data: Any = None
    hint: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_entity(cls, m: MessageEntity) -> "MessageResponse":
        return cls(
            id=m.id,
            thread_id=m.thread_id,
            workflow_id=m.workflow_id,
            participant_id=m.participant_id,
            scope=m.scope,
            sequence=m.sequence,
            direction=m.direction.value,
            type=m.message_type.value,
            text=m.text,
            data=m.data,
            hint=m.hint,
            metadata=m.metadata,
            created_at=m.created_at,
        )


class SendMessageResponse(CamelModel):
    message: MessageResponse
    replies: list[MessageResponse] = Field(default_factory=list)
    handled: bool
    error: str | None = None
    # False while the handler is still running (e.g. waiting on a task)
    completed: bool = True

    @classmethod
    def from_result(cls, result: ReceiveResult, *, completed: bool = True) -> "SendMessageResponse":
        return cls(
            message=MessageResponse.from_entity(result.message),
            replies=[MessageResponse.from_entity(r) for r in result.replies],
            handled=result.handled,
            error=result.error,
            completed=completed,
        )


class ThreadResponse(CamelModel):
    id: str
    workflow_id: str
    participant_id: str
    created_at: datetime

    @classmethod
    def from_entity(cls, t: ThreadEntity) -> "ThreadResponse":
        return cls(id=t.id, workflow_id=t.workflow_id, participant_id=t.participant_id, created_at=t.created_at)


class HistoryResponse(CamelModel):
    thread_id: str | None
    scope: str | None
    page: int
    page_size: int
    messages: list[MessageResponse]


class ScopesResponse(CamelModel):
    thread_id: str | None
    scopes: list[str | None]


class HintResponse(CamelModel):
    thread_id: str | None
    scope: str | None
    hint: str | None
