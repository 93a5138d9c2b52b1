"""Application services shared by use cases."""

from switchboard.application.services.workflow_registry import (
    AgentDefinition,
    WorkflowDefinition,
    WorkflowRegistry,
    load_agents_module,
)

__all__ = ["AgentDefinition", "WorkflowDefinition", "WorkflowRegistry", "load_agents_module"]
