"""Domain value objects for the Switchboard application.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from switchboard.domain.exceptions import InvalidKeyError, ValidationException

_SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

DEFAULT_TASK_ACTIONS: tuple[str, ...] = ("approve", "reject")


def normalize_scope(scope: str | None) -> str | None:
    """Return the stored form of a scope label.

    None and blank strings are the null scope. Named scopes are kept verbatim
    (case and inner whitespace are significant), only surrounding whitespace
    is stripped.
    """
    if scope is None:
        return None
    stripped = scope.strip()
    return stripped or None


@dataclass(frozen=True)
class TenantCode:
    """Tenant code: 3-15 characters, lowercase alphanumeric with optional hyphens."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValidationException("Tenant code must be a non-empty string", field="code")
        if len(self.value) < 3 or len(self.value) > 15:
            raise ValidationException("Tenant code must be 3-15 characters", field="code")
        if not _SLUG_RE.match(self.value):
            raise ValidationException(
                "Tenant code must be lowercase alphanumeric with optional hyphens "
                "(e.g., 'acme', 'acme-corp')",
                field="code",
            )


@dataclass(frozen=True)
class WorkflowType:
    """Composite workflow identity ``AgentName:WorkflowName``.

    The workflow name is everything after the last colon, so agent names may
    themselves contain colons.
    """

    agent_name: str
    workflow_name: str

    SEPARATOR: ClassVar[str] = ":"

    def __post_init__(self) -> None:
        if not self.agent_name or not self.agent_name.strip():
            raise ValidationException("Agent name must be non-empty", field="agent_name")
        if not self.workflow_name or not self.workflow_name.strip():
            raise ValidationException("Workflow name must be non-empty", field="workflow_name")
        if self.SEPARATOR in self.workflow_name:
            raise ValidationException(
                f"Workflow name must not contain '{self.SEPARATOR}'", field="workflow_name"
            )

    @classmethod
    def parse(cls, value: str) -> "WorkflowType":
        """Parse ``Agent:Workflow``. Raises ValidationException when malformed."""
        agent, sep, name = (value or "").rpartition(cls.SEPARATOR)
        if not sep:
            raise ValidationException(
                f"Workflow type must look like 'Agent{cls.SEPARATOR}Workflow', got {value!r}",
                field="workflow_type",
            )
        return cls(agent_name=agent, workflow_name=name)

    @property
    def value(self) -> str:
        return f"{self.agent_name}{self.SEPARATOR}{self.workflow_name}"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ThreadKey:
    """Identity of a conversation thread: (tenant_id, workflow_id, participant_id).

    All three parts must be non-empty; InvalidKeyError names the offending part.
    """

    tenant_id: str
    workflow_id: str
    participant_id: str

    def __post_init__(self) -> None:
        for part in ("tenant_id", "workflow_id", "participant_id"):
            value = getattr(self, part)
            if not isinstance(value, str) or not value.strip():
                raise InvalidKeyError(part)


@dataclass(frozen=True)
class ActionSet:
    """Permissible actions of a HITL task. Non-empty, unique, non-blank names."""

    actions: tuple[str, ...] = DEFAULT_TASK_ACTIONS

    def __post_init__(self) -> None:
        if not self.actions:
            raise ValidationException("A task needs at least one action", field="actions")
        if any(not a or not a.strip() for a in self.actions):
            raise ValidationException("Task actions must be non-empty strings", field="actions")
        if len(set(self.actions)) != len(self.actions):
            raise ValidationException("Task actions must be unique", field="actions")

    def allows(self, action: str) -> bool:
        return action in self.actions
