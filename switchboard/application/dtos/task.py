"""DTOs for durable waits and HITL tasks (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from switchboard.domain.enums import TaskState
from switchboard.domain.value_objects.core import DEFAULT_TASK_ACTIONS


@dataclass(frozen=True)
class TaskCreate:
    """Input for DurableWaitCoordinator.start. id is the correlation id."""

    id: str
    tenant_id: str
    title: str
    actions: tuple[str, ...] = DEFAULT_TASK_ACTIONS
    timeout_seconds: float | None = None
    description: str | None = None
    workflow_id: str | None = None
    parent_instance_id: str | None = None
    participant_id: str | None = None
    thread_id: str | None = None
    scope: str | None = None
    draft_work: Any = None
    survive_parent_close: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WaitHandle:
    """Reference to a started wait; pass to await_result or perform_action."""

    correlation_id: str
    tenant_id: str
    parent_instance_id: str | None = None
    survive_parent_close: bool = False


@dataclass(frozen=True)
class WaitResult:
    """Outcome of a completed wait. Timeout gives action and comment None."""

    correlation_id: str
    state: TaskState
    performed_action: str | None = None
    comment: str | None = None
    timed_out: bool = False

    @property
    def approved(self) -> bool:
        return self.performed_action == "approve"
