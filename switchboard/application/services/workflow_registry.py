"""Workflow registry: agents and their workflows, built at startup.

Lookup is keyed by (tenant, workflow type). Agents registered without a
tenant are templates visible to every tenant; a tenant-owned agent of the
same name shadows the template for that tenant.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from switchboard.domain.enums import MessageType, WorkflowKind
from switchboard.domain.exceptions import ValidationException, WorkflowNotFoundError
from switchboard.domain.value_objects.core import WorkflowType

if TYPE_CHECKING:
    from switchboard.application.use_cases.delivery.message_context import MessageContext
    from switchboard.application.use_cases.workflows.runner import RunContext

logger = logging.getLogger(__name__)

MessageHandler = Callable[["MessageContext"], Awaitable[None]]
WorkflowRun = Callable[["RunContext", Any], Awaitable[Any]]


@dataclass(frozen=True)
class WorkflowDefinition:
    """One workflow of an agent.

    Built-in workflows react to messages through on_* handlers. Custom
    workflows expose run(ctx, input); they may also handle messages (A2A).
    """

    name: str
    kind: WorkflowKind = WorkflowKind.BUILTIN
    on_chat: MessageHandler | None = None
    on_data: MessageHandler | None = None
    on_file: MessageHandler | None = None
    on_webhook: MessageHandler | None = None
    run: WorkflowRun | None = None
    description: str | None = None
    agent_name: str = ""

    @property
    def workflow_type(self) -> str:
        return WorkflowType(self.agent_name, self.name).value

    def handler_for(self, message_type: MessageType) -> MessageHandler | None:
        return {
            MessageType.CHAT: self.on_chat,
            MessageType.DATA: self.on_data,
            MessageType.FILE: self.on_file,
            MessageType.WEBHOOK: self.on_webhook,
        }.get(message_type)


@dataclass(frozen=True)
class AgentDefinition:
    """Named, versioned agent. tenant_id None makes it a template for all tenants."""

    name: str
    workflows: tuple[WorkflowDefinition, ...] = ()
    tenant_id: str | None = None
    version: str = "1.0.0"
    description: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class WorkflowRegistry:
    """In-memory table of agent and workflow definitions."""

    def __init__(self) -> None:
        self._agents: dict[tuple[str | None, str], AgentDefinition] = {}
        self._workflows: dict[tuple[str | None, str], WorkflowDefinition] = {}

    def register_agent(self, agent: AgentDefinition) -> AgentDefinition:
        """Register an agent and its workflows.

        Raises:
            ValidationException: duplicate agent for the same owner, or duplicate
                workflow names inside the agent.
        """
        key = (agent.tenant_id, agent.name)
        if key in self._agents:
            raise ValidationException(f"Agent '{agent.name}' is already registered", field="name")
        names = [w.name for w in agent.workflows]
        if len(set(names)) != len(names):
            raise ValidationException(
                f"Agent '{agent.name}' declares duplicate workflow names", field="workflows"
            )
        bound = tuple(replace(w, agent_name=agent.name) for w in agent.workflows)
        for wf in bound:
            WorkflowType(agent.name, wf.name)
            if wf.kind is WorkflowKind.CUSTOM and wf.run is None:
                raise ValidationException(
                    f"Custom workflow '{wf.workflow_type}' needs a run function", field="run"
                )
        agent = replace(agent, workflows=bound)
        self._agents[key] = agent
        for wf in bound:
            self._workflows[(agent.tenant_id, wf.workflow_type)] = wf
        logger.info(
            "Registered agent %s v%s (%s) with %d workflow(s)",
            agent.name,
            agent.version,
            agent.tenant_id or "template",
            len(bound),
        )
        return agent

    def get_agent(self, tenant_id: str, agent_name: str) -> AgentDefinition | None:
        return self._agents.get((tenant_id, agent_name)) or self._agents.get((None, agent_name))

    def is_registered(self, tenant_id: str, workflow_type: str) -> bool:
        return self._lookup(tenant_id, workflow_type) is not None

    def get_workflow(self, tenant_id: str, workflow_type: str) -> WorkflowDefinition:
        """Return the workflow visible to tenant_id; raises WorkflowNotFoundError."""
        wf = self._lookup(tenant_id, workflow_type)
        if wf is None:
            raise WorkflowNotFoundError(workflow_type)
        return wf

    def resolve_by_name(
        self,
        tenant_id: str,
        agent_name: str,
        workflow_name: str,
        *,
        builtin_only: bool = True,
    ) -> WorkflowDefinition:
        """Resolve a short workflow name inside one agent.

        Matching is case-insensitive. More than one match is ambiguous.

        Raises:
            WorkflowNotFoundError: unknown agent, no match, or ambiguous name.
        """
        agent = self.get_agent(tenant_id, agent_name)
        if agent is None:
            raise WorkflowNotFoundError(f"{agent_name}{WorkflowType.SEPARATOR}{workflow_name}")
        wanted = workflow_name.strip().casefold()
        matches = [
            wf
            for wf in agent.workflows
            if wf.name.casefold() == wanted
            and (not builtin_only or wf.kind is WorkflowKind.BUILTIN)
        ]
        if not matches:
            raise WorkflowNotFoundError(workflow_name)
        if len(matches) > 1:
            raise WorkflowNotFoundError(workflow_name, reason="ambiguous")
        return matches[0]

    def list_workflows(self, tenant_id: str | None) -> list[WorkflowDefinition]:
        """Workflows visible to tenant_id (templates only for None); tenant-owned ones shadow templates."""
        owned = {name for (owner, name) in self._agents if tenant_id is not None and owner == tenant_id}
        visible: dict[str, WorkflowDefinition] = {}
        for (owner, wf_type), wf in self._workflows.items():
            if owner is None and wf.agent_name not in owned:
                visible.setdefault(wf_type, wf)
        for (owner, wf_type), wf in self._workflows.items():
            if owner == tenant_id:
                visible[wf_type] = wf
        return sorted(visible.values(), key=lambda w: w.workflow_type)

    def _lookup(self, tenant_id: str, workflow_type: str) -> WorkflowDefinition | None:
        try:
            agent_name = WorkflowType.parse(workflow_type).agent_name
        except ValidationException:
            return None
        # a tenant-owned agent hides the template of the same name entirely
        if (tenant_id, agent_name) in self._agents:
            return self._workflows.get((tenant_id, workflow_type))
        return self._workflows.get((None, workflow_type))


def load_agents_module(registry: WorkflowRegistry, module_path: str) -> None:
    """Import module_path and call its register_agents(registry)."""
    module = importlib.import_module(module_path)
    register = getattr(module, "register_agents", None)
    if not callable(register):
        raise ValidationException(
            f"Module '{module_path}' does not define register_agents(registry)",
            field="agents_module",
        )
    register(registry)
    logger.info("Loaded agents from %s", module_path)
