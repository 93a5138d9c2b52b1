"""Message domain entity and payload variants.

A message belongs to exactly one (thread, scope) bucket and is immutable
once appended. The payload is a tagged union keyed by MessageType; the
flat text/data pair is the persisted and wire form.
"""

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from switchboard.domain.enums import MessageDirection, MessageType
from switchboard.domain.exceptions import ValidationException


@dataclass(frozen=True)
class ChatPayload:
    text: str
    data: Any = None

    kind: ClassVar[MessageType] = MessageType.CHAT


@dataclass(frozen=True)
class DataPayload:
    data: Any
    text: str = ""

    kind: ClassVar[MessageType] = MessageType.DATA


@dataclass(frozen=True)
class FilePayload:
    """Base64 file content with optional name and content type."""

    content_base64: str
    file_name: str | None = None
    content_type: str | None = None
    text: str = ""

    kind: ClassVar[MessageType] = MessageType.FILE

    def __post_init__(self) -> None:
        if not isinstance(self.content_base64, str):
            raise ValidationException("File content must be a base64 string", field="data")
        if not self.content_base64:
            raise ValidationException("File content is required", field="data")
        try:
            base64.b64decode(self.content_base64, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise ValidationException("File content must be base64", field="data") from e

    def decode(self) -> bytes:
        return base64.b64decode(self.content_base64)


@dataclass(frozen=True)
class WebhookPayload:
    name: str
    body: Any = None
    text: str = ""

    kind: ClassVar[MessageType] = MessageType.WEBHOOK


@dataclass(frozen=True)
class HandoffPayload:
    """Hand-off marker naming the workflow that should take over the conversation."""

    target_workflow_id: str
    text: str = ""
    data: Any = None

    kind: ClassVar[MessageType] = MessageType.HANDOFF

    def __post_init__(self) -> None:
        if not self.target_workflow_id:
            raise ValidationException("Handoff target workflow is required", field="target_workflow_id")


MessagePayload = ChatPayload | DataPayload | FilePayload | WebhookPayload | HandoffPayload


def payload_to_wire(payload: MessagePayload) -> tuple[MessageType, str, Any]:
    """Flatten a payload to (type, text, data) for persistence and transport."""
    match payload:
        case ChatPayload(text=text, data=data):
            return MessageType.CHAT, text, data
        case DataPayload(data=data, text=text):
            return MessageType.DATA, text, data
        case FilePayload():
            data = {"content": payload.content_base64}
            if payload.file_name:
                data["fileName"] = payload.file_name
            if payload.content_type:
                data["contentType"] = payload.content_type
            return MessageType.FILE, payload.text, data
        case WebhookPayload(name=name, body=body, text=text):
            return MessageType.WEBHOOK, text, {"name": name, "body": body}
        case HandoffPayload(target_workflow_id=target, text=text, data=data):
            return MessageType.HANDOFF, text, {"targetWorkflowId": target, "data": data}
    raise ValidationException(f"Unsupported payload {type(payload).__name__}", field="payload")


def payload_from_wire(message_type: MessageType | str, text: str | None, data: Any) -> MessagePayload:
    """Rebuild the tagged payload from its persisted (type, text, data) form."""
    kind = MessageType(message_type)
    text = text or ""
    if kind is MessageType.CHAT:
        return ChatPayload(text=text, data=data)
    if kind is MessageType.DATA:
        return DataPayload(data=data, text=text)
    if kind is MessageType.FILE:
        if isinstance(data, str):
            return FilePayload(content_base64=data, text=text)
        if not isinstance(data, dict) or not isinstance(data.get("content"), str):
            raise ValidationException(
                "File data must be base64 content or {content, fileName?, contentType?}",
                field="data",
            )
        return FilePayload(
            content_base64=data["content"],
            file_name=data.get("fileName"),
            content_type=data.get("contentType"),
            text=text,
        )
    if kind is MessageType.WEBHOOK:
        data = data if isinstance(data, dict) else {"body": data}
        return WebhookPayload(name=data.get("name") or "", body=data.get("body"), text=text)
    data = data if isinstance(data, dict) else {}
    return HandoffPayload(
        target_workflow_id=data.get("targetWorkflowId") or "", text=text, data=data.get("data")
    )


@dataclass(frozen=True)
class MessageEntity:
    """Immutable message appended to a (thread, scope) bucket.

    sequence is the per-bucket position assigned at append time; it defines
    the total order inside the bucket and nothing across buckets.
    """

    id: str
    tenant_id: str
    thread_id: str
    scope_bucket_id: str
    workflow_id: str
    participant_id: str
    scope: str | None
    direction: MessageDirection
    payload: MessagePayload
    sequence: int
    created_at: datetime
    hint: str | None = None
    request_id: str | None = None
    authorization_digest: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationException("Message ID is required", field="id")
        if not self.thread_id:
            raise ValidationException("Message must belong to a thread", field="thread_id")
        if self.sequence < 1:
            raise ValidationException("Message sequence starts at 1", field="sequence")

    @property
    def message_type(self) -> MessageType:
        return self.payload.kind

    @property
    def text(self) -> str:
        return payload_to_wire(self.payload)[1]

    @property
    def data(self) -> Any:
        return payload_to_wire(self.payload)[2]
