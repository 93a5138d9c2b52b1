"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from switchboard.domain.entities.message import (
    ChatPayload,
    DataPayload,
    FilePayload,
    HandoffPayload,
    MessageEntity,
    MessagePayload,
    WebhookPayload,
    payload_from_wire,
    payload_to_wire,
)
from switchboard.domain.entities.task import TaskEntity
from switchboard.domain.entities.thread import ScopeBucketEntity, ThreadEntity

__all__ = [
    "ChatPayload",
    "DataPayload",
    "FilePayload",
    "HandoffPayload",
    "MessageEntity",
    "MessagePayload",
    "WebhookPayload",
    "payload_from_wire",
    "payload_to_wire",
    "ScopeBucketEntity",
    "TaskEntity",
    "ThreadEntity",
]
