"""Explicit workflow context passed through every handler and workflow run.

Carries the identity that conversation operations need (tenant, agent,
workflow type, participant, scope, thread). Nothing is read from ambient
globals.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from switchboard.domain.value_objects.core import WorkflowType


@dataclass(frozen=True)
class WorkflowContext:
    tenant_id: str
    workflow_type: str
    participant_id: str | None = None
    scope: str | None = None
    thread_id: str | None = None
    instance_id: str | None = None
    request_id: str | None = None

    @property
    def agent_name(self) -> str:
        return WorkflowType.parse(self.workflow_type).agent_name

    @property
    def workflow_name(self) -> str:
        return WorkflowType.parse(self.workflow_type).workflow_name

    def with_conversation(
        self,
        participant_id: str | None,
        scope: str | None,
        thread_id: str | None,
    ) -> WorkflowContext:
        return replace(self, participant_id=participant_id, scope=scope, thread_id=thread_id)
