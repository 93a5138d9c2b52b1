"""HITL task (durable wait) domain entity.

State machine: PENDING -> COMPLETED_BY_ACTION | COMPLETED_BY_TIMEOUT | ABANDONED.
Terminal states are final. Transitions return a new frozen entity; the
repository persists them with a compare-and-set on the pending state.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from switchboard.domain.enums import TaskState
from switchboard.domain.exceptions import (
    AlreadyCompletedError,
    InvalidActionError,
    ValidationException,
)
from switchboard.domain.value_objects.core import DEFAULT_TASK_ACTIONS, ActionSet


@dataclass(frozen=True)
class TaskEntity:
    id: str
    tenant_id: str
    title: str
    state: TaskState
    created_at: datetime
    actions: tuple[str, ...] = DEFAULT_TASK_ACTIONS
    description: str | None = None
    workflow_id: str | None = None
    parent_instance_id: str | None = None
    participant_id: str | None = None
    thread_id: str | None = None
    scope: str | None = None
    draft_work: Any = None
    timeout_seconds: float | None = None
    deadline_at: datetime | None = None
    survive_parent_close: bool = False
    performed_action: str | None = None
    comment: str | None = None
    completed_at: datetime | None = None
    notification_message_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate task business rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Task ID is required", field="id")
        if not self.tenant_id:
            raise ValidationException("Task must belong to a tenant", field="tenant_id")
        if not self.title or not self.title.strip():
            raise ValidationException("Task title is required", field="title")
        ActionSet(tuple(self.actions))
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValidationException("Task timeout must be positive", field="timeout_seconds")

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def timed_out(self) -> bool:
        return self.state is TaskState.COMPLETED_BY_TIMEOUT

    def ensure_can_perform(self, action: str) -> None:
        """Raise AlreadyCompletedError or InvalidActionError when action cannot apply."""
        if self.is_terminal:
            raise AlreadyCompletedError(self.id, self.state.value)
        if not ActionSet(tuple(self.actions)).allows(action):
            raise InvalidActionError(self.id, action, list(self.actions))

    def perform(self, action: str, comment: str | None, at: datetime) -> "TaskEntity":
        self.ensure_can_perform(action)
        return replace(
            self,
            state=TaskState.COMPLETED_BY_ACTION,
            performed_action=action,
            comment=comment,
            completed_at=at,
        )

    def expire(self, at: datetime) -> "TaskEntity":
        if self.is_terminal:
            raise AlreadyCompletedError(self.id, self.state.value)
        return replace(self, state=TaskState.COMPLETED_BY_TIMEOUT, completed_at=at)

    def abandon(self, at: datetime) -> "TaskEntity":
        if self.is_terminal:
            raise AlreadyCompletedError(self.id, self.state.value)
        return replace(self, state=TaskState.ABANDONED, completed_at=at)
