"""Tests for domain value objects (thread key, workflow type, tenant code, scopes, actions)."""

import pytest

from switchboard.domain.exceptions import InvalidKeyError, ValidationException
from switchboard.domain.value_objects.core import (
    ActionSet,
    TenantCode,
    ThreadKey,
    WorkflowType,
    normalize_scope,
)


@pytest.mark.parametrize("part", ["tenant_id", "workflow_id", "participant_id"])
def test_thread_key_rejects_empty_part(part: str) -> None:
    values = {"tenant_id": "t1", "workflow_id": "Support:Conversational", "participant_id": "p1"}
    values[part] = "  "
    with pytest.raises(InvalidKeyError) as exc_info:
        ThreadKey(**values)
    assert exc_info.value.details["part"] == part


def test_thread_key_equality() -> None:
    assert ThreadKey("t1", "A:B", "p1") == ThreadKey("t1", "A:B", "p1")
    assert ThreadKey("t1", "A:B", "p1") != ThreadKey("t2", "A:B", "p1")


def test_workflow_type_parse_uses_last_separator() -> None:
    wt = WorkflowType.parse("Ns:Agent:Conversational")
    assert wt.agent_name == "Ns:Agent"
    assert wt.workflow_name == "Conversational"
    assert wt.value == "Ns:Agent:Conversational"


@pytest.mark.parametrize("value", ["NoSeparator", ":Workflow", "Agent:", ""])
def test_workflow_type_parse_rejects_malformed(value: str) -> None:
    with pytest.raises(ValidationException):
        WorkflowType.parse(value)


def test_tenant_code_valid() -> None:
    assert TenantCode("acme-corp").value == "acme-corp"


@pytest.mark.parametrize("code", ["", "ab", "a" * 16, "Acme", "acme_corp", "-acme"])
def test_tenant_code_invalid(code: str) -> None:
    with pytest.raises(ValidationException):
        TenantCode(code)


def test_normalize_scope() -> None:
    """None and blank are the null scope; named scopes keep case and inner spaces."""
    assert normalize_scope(None) is None
    assert normalize_scope("   ") is None
    assert normalize_scope(" Billing Q1 ") == "Billing Q1"
    assert normalize_scope("billing") != normalize_scope("Billing")


def test_action_set_rules() -> None:
    assert ActionSet().allows("approve")
    assert not ActionSet(("approve",)).allows("reject")
    with pytest.raises(ValidationException):
        ActionSet(())
    with pytest.raises(ValidationException):
        ActionSet(("approve", "approve"))
    with pytest.raises(ValidationException):
        ActionSet(("approve", " "))
