"""Task repository. transition() is a compare-and-set on state = 'pending'."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from switchboard.domain.entities.task import TaskEntity
from switchboard.domain.enums import TaskState
from switchboard.infrastructure.persistence.models.task import Task


def _task_to_entity(t: Task) -> TaskEntity:
    return TaskEntity(
        id=t.id,
        tenant_id=t.tenant_id,
        title=t.title,
        state=TaskState(t.state),
        created_at=t.created_at,
        actions=tuple(t.actions or ()),
        description=t.description,
        workflow_id=t.workflow_id,
        parent_instance_id=t.parent_instance_id,
        participant_id=t.participant_id,
        thread_id=t.thread_id,
        scope=t.scope,
        draft_work=t.draft_work,
        timeout_seconds=t.timeout_seconds,
        deadline_at=t.deadline_at,
        survive_parent_close=t.survive_parent_close,
        performed_action=t.performed_action,
        comment=t.comment,
        completed_at=t.completed_at,
        notification_message_id=t.notification_message_id,
        metadata=dict(t.task_metadata or {}),
    )


class TaskRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, task: TaskEntity) -> TaskEntity:
        row = Task(
            id=task.id,
            tenant_id=task.tenant_id,
            title=task.title,
            description=task.description,
            state=task.state.value,
            actions=list(task.actions),
            workflow_id=task.workflow_id,
            parent_instance_id=task.parent_instance_id,
            participant_id=task.participant_id,
            thread_id=task.thread_id,
            scope=task.scope,
            draft_work=task.draft_work,
            timeout_seconds=task.timeout_seconds,
            deadline_at=task.deadline_at,
            survive_parent_close=task.survive_parent_close,
            task_metadata=dict(task.metadata),
        )
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return _task_to_entity(row)

    async def get_by_id(self, task_id: str) -> TaskEntity | None:
        row = await self.db.get(Task, task_id)
        return _task_to_entity(row) if row else None

    async def transition(self, task: TaskEntity) -> bool:
        """Write the terminal fields only if the row is still pending."""
        stmt = (
            update(Task)
            .where(Task.id == task.id, Task.state == TaskState.PENDING.value)
            .values(
                state=task.state.value,
                performed_action=task.performed_action,
                comment=task.comment,
                completed_at=task.completed_at,
            )
            .returning(Task.id)
            .execution_options(synchronize_session=False)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none() is not None

    async def link_notification(self, task_id: str, message_id: str) -> bool:
        stmt = (
            update(Task)
            .where(Task.id == task_id, Task.notification_message_id.is_(None))
            .values(notification_message_id=message_id)
            .returning(Task.id)
            .execution_options(synchronize_session=False)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none() is not None

    async def list_pending(self) -> list[TaskEntity]:
        result = await self.db.execute(
            select(Task).where(Task.state == TaskState.PENDING.value).order_by(Task.created_at)
        )
        return [_task_to_entity(t) for t in result.scalars().all()]

    async def list_by_parent(
        self, parent_instance_id: str, state: TaskState | None = TaskState.PENDING
    ) -> list[TaskEntity]:
        stmt = select(Task).where(Task.parent_instance_id == parent_instance_id)
        if state is not None:
            stmt = stmt.where(Task.state == state.value)
        result = await self.db.execute(stmt.order_by(Task.created_at))
        return [_task_to_entity(t) for t in result.scalars().all()]

    async def list_by_tenant(
        self,
        tenant_id: str,
        state: TaskState | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[TaskEntity]:
        stmt = select(Task).where(Task.tenant_id == tenant_id)
        if state is not None:
            stmt = stmt.where(Task.state == state.value)
        result = await self.db.execute(
            stmt.order_by(Task.created_at.desc(), Task.id.desc()).offset(skip).limit(limit)
        )
        return [_task_to_entity(t) for t in result.scalars().all()]
