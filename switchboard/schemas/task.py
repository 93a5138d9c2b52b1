"""HITL task API schemas."""

from datetime import datetime
from typing import Any

from pydantic import Field

from switchboard.application.dtos.task import WaitResult
from switchboard.domain.entities.task import TaskEntity
from switchboard.domain.enums import TaskState
from switchboard.schemas.base import CamelModel


class TaskResponse(CamelModel):
    id: str
    title: str
    description: str | None = None
    state: TaskState
    actions: list[str]
    workflow_id: str | None = None
    participant_id: str | None = None
    scope: str | None = None
    draft_work: Any = None
    deadline_at: datetime | None = None
    performed_action: str | None = None
    comment: str | None = None
    created_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_entity(cls, t: TaskEntity) -> "TaskResponse":
        return cls(
            id=t.id,
            title=t.title,
            description=t.description,
            state=t.state,
            actions=list(t.actions),
            workflow_id=t.workflow_id,
            participant_id=t.participant_id,
            scope=t.scope,
            draft_work=t.draft_work,
            deadline_at=t.deadline_at,
            performed_action=t.performed_action,
            comment=t.comment,
            created_at=t.created_at,
            completed_at=t.completed_at,
        )


class TaskActionRequest(CamelModel):
    action: str = Field(..., min_length=1)
    comment: str | None = None


class TaskActionResponse(CamelModel):
    task_id: str
    state: TaskState
    performed_action: str | None = None
    comment: str | None = None
    timed_out: bool = False

    @classmethod
    def from_result(cls, r: WaitResult) -> "TaskActionResponse":
        return cls(
            task_id=r.correlation_id,
            state=r.state,
            performed_action=r.performed_action,
            comment=r.comment,
            timed_out=r.timed_out,
        )
