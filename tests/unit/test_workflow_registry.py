"""Tests for the workflow registry (registration, lookup, tenant shadowing, name resolution)."""

import pytest

from switchboard.application.services.workflow_registry import (
    AgentDefinition,
    WorkflowDefinition,
    WorkflowRegistry,
    load_agents_module,
)
from switchboard.domain.enums import MessageType, WorkflowKind
from switchboard.domain.exceptions import ValidationException, WorkflowNotFoundError


async def _noop(ctx) -> None:
    return None


async def _run(ctx, input):
    return input


def _agent(name: str = "Support", tenant_id: str | None = None, *workflows: WorkflowDefinition) -> AgentDefinition:
    return AgentDefinition(
        name=name,
        tenant_id=tenant_id,
        workflows=workflows or (WorkflowDefinition(name="Conversational", on_chat=_noop),),
    )


def test_register_binds_workflow_type() -> None:
    registry = WorkflowRegistry()
    registry.register_agent(_agent())
    wf = registry.get_workflow("t1", "Support:Conversational")
    assert wf.agent_name == "Support"
    assert wf.handler_for(MessageType.CHAT) is _noop
    assert wf.handler_for(MessageType.WEBHOOK) is None


def test_register_rejects_duplicates() -> None:
    registry = WorkflowRegistry()
    registry.register_agent(_agent())
    with pytest.raises(ValidationException):
        registry.register_agent(_agent())
    with pytest.raises(ValidationException):
        registry.register_agent(
            _agent("Other", None, WorkflowDefinition(name="A"), WorkflowDefinition(name="A"))
        )


def test_custom_workflow_needs_run() -> None:
    with pytest.raises(ValidationException):
        WorkflowRegistry().register_agent(
            _agent("Custom", None, WorkflowDefinition(name="Job", kind=WorkflowKind.CUSTOM))
        )


def test_unknown_workflow_raises() -> None:
    registry = WorkflowRegistry()
    registry.register_agent(_agent())
    with pytest.raises(WorkflowNotFoundError):
        registry.get_workflow("t1", "Support:Missing")
    assert not registry.is_registered("t1", "not-a-type")


def test_tenant_agent_shadows_template() -> None:
    registry = WorkflowRegistry()
    registry.register_agent(_agent())
    registry.register_agent(_agent("Support", "t2", WorkflowDefinition(name="Private", on_chat=_noop)))
    assert registry.is_registered("t1", "Support:Conversational")
    assert not registry.is_registered("t2", "Support:Conversational")
    assert registry.is_registered("t2", "Support:Private")
    assert [w.workflow_type for w in registry.list_workflows("t2")] == ["Support:Private"]
    assert [w.workflow_type for w in registry.list_workflows("t1")] == ["Support:Conversational"]
    assert [w.workflow_type for w in registry.list_workflows(None)] == ["Support:Conversational"]


def test_resolve_by_name_case_insensitive_builtin_only() -> None:
    registry = WorkflowRegistry()
    registry.register_agent(
        _agent(
            "Support",
            None,
            WorkflowDefinition(name="Conversational", on_chat=_noop),
            WorkflowDefinition(name="Nightly", kind=WorkflowKind.CUSTOM, run=_run),
        )
    )
    assert registry.resolve_by_name("t1", "Support", "conversational").name == "Conversational"
    with pytest.raises(WorkflowNotFoundError):
        registry.resolve_by_name("t1", "Support", "Nightly")
    assert registry.resolve_by_name("t1", "Support", "Nightly", builtin_only=False).kind is WorkflowKind.CUSTOM
    with pytest.raises(WorkflowNotFoundError):
        registry.resolve_by_name("t1", "Unknown", "Conversational")


def test_resolve_by_name_ambiguous() -> None:
    registry = WorkflowRegistry()
    registry.register_agent(
        _agent(
            "Support",
            None,
            WorkflowDefinition(name="Chat", on_chat=_noop),
            WorkflowDefinition(name="CHAT", on_chat=_noop),
        )
    )
    with pytest.raises(WorkflowNotFoundError) as exc_info:
        registry.resolve_by_name("t1", "Support", "chat")
    assert exc_info.value.details["reason"] == "ambiguous"


def test_load_agents_module_requires_register_function() -> None:
    with pytest.raises(ValidationException):
        load_agents_module(WorkflowRegistry(), "json")
