"""Domain enumerations for the Switchboard application.

Enums represent fixed sets of domain values (message direction and type,
task state, workflow kind, tenant status).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class TenantStatus(_ValuesMixin, str, Enum):
    """Tenant lifecycle status. Suspended tenants are rejected at the API edge."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class MessageDirection(_ValuesMixin, str, Enum):
    """Whether a message came from a participant or was sent by a workflow."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


class MessageType(_ValuesMixin, str, Enum):
    """Message payload kind. Values match the wire names used by the admin API."""

    CHAT = "Chat"
    DATA = "Data"
    FILE = "File"
    WEBHOOK = "Webhook"
    HANDOFF = "Handoff"


class TaskState(_ValuesMixin, str, Enum):
    """Durable wait (HITL task) lifecycle.

    PENDING is the only non-terminal state. No transition leaves a terminal state.
    """

    PENDING = "pending"
    COMPLETED_BY_ACTION = "completed_by_action"
    COMPLETED_BY_TIMEOUT = "completed_by_timeout"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not TaskState.PENDING


class WorkflowKind(_ValuesMixin, str, Enum):
    """Built-in workflows are message driven; custom workflows run a coroutine."""

    BUILTIN = "builtin"
    CUSTOM = "custom"


class DeliveryStatus(_ValuesMixin, str, Enum):
    """Outbox state of an outgoing message."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
