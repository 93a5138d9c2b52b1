"""Domain value objects: thread keys, workflow types, scopes, task actions."""

from switchboard.domain.value_objects.core import (
    DEFAULT_TASK_ACTIONS,
    ActionSet,
    TenantCode,
    ThreadKey,
    WorkflowType,
    normalize_scope,
)

__all__ = [
    "DEFAULT_TASK_ACTIONS",
    "ActionSet",
    "TenantCode",
    "ThreadKey",
    "WorkflowType",
    "normalize_scope",
]
