"""Application DTOs (no ORM dependency)."""

from switchboard.application.dtos.events import ConversationEvent
from switchboard.application.dtos.message import InboundMessage, MessageDraft, ReceiveResult
from switchboard.application.dtos.task import TaskCreate, WaitHandle, WaitResult
from switchboard.application.dtos.tenant import TenantCreationResult, TenantResult
from switchboard.application.dtos.webhook import WebhookResponse

__all__ = [
    "ConversationEvent",
    "InboundMessage",
    "MessageDraft",
    "ReceiveResult",
    "TaskCreate",
    "TenantCreationResult",
    "TenantResult",
    "WaitHandle",
    "WaitResult",
    "WebhookResponse",
]
