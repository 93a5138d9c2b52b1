"""Agent-to-agent messaging between workflows of the same tenant."""

from __future__ import annotations

from typing import Any

from switchboard.application.context import WorkflowContext
from switchboard.application.dtos.message import InboundMessage, ReceiveResult
from switchboard.application.use_cases.delivery.router import DeliveryRouter
from switchboard.core.constants import META_A2A, META_SENDER_WORKFLOW
from switchboard.domain.entities.message import ChatPayload, DataPayload, MessagePayload
from switchboard.domain.exceptions import InvalidKeyError, ValidationException, WorkflowNotFoundError
from switchboard.domain.value_objects.core import WorkflowType
from switchboard.shared.telemetry.tracing import traced


class A2AClient:
    """Sends a chat or data message from one workflow to another.

    The call is recorded as an ordinary incoming message in the target
    workflow's thread for the caller's participant, so the target handler
    sees it like any other message. Its replies come back in ReceiveResult.
    """

    def __init__(self, router: DeliveryRouter) -> None:
        self.router = router

    async def send_chat(
        self,
        context: WorkflowContext,
        target: str,
        text: str,
        data: Any = None,
        *,
        scope: str | None = None,
        expect_reply: bool = True,
    ) -> ReceiveResult:
        return await self._send(context, target, ChatPayload(text=text, data=data), scope, expect_reply)

    async def send_data(
        self,
        context: WorkflowContext,
        target: str,
        data: Any,
        *,
        text: str = "",
        scope: str | None = None,
        expect_reply: bool = True,
    ) -> ReceiveResult:
        return await self._send(context, target, DataPayload(data=data, text=text), scope, expect_reply)

    def resolve_target(self, context: WorkflowContext, target: str) -> str:
        """Full workflow type for target: ``Agent:Workflow`` or a name in the caller's agent."""
        registry = self.router.workflow_registry
        if WorkflowType.SEPARATOR in target:
            workflow_type = WorkflowType.parse(target).value
            registry.get_workflow(context.tenant_id, workflow_type)
            return workflow_type
        return registry.resolve_by_name(
            context.tenant_id, context.agent_name, target, builtin_only=False
        ).workflow_type

    @traced("a2a.send")
    async def _send(
        self,
        context: WorkflowContext,
        target: str,
        payload: MessagePayload,
        scope: str | None,
        expect_reply: bool,
    ) -> ReceiveResult:
        if not context.participant_id:
            raise InvalidKeyError("participant_id")
        if not target:
            raise ValidationException("Target workflow is required", field="target")
        try:
            workflow_type = self.resolve_target(context, target)
        except ValidationException as e:
            raise WorkflowNotFoundError(target) from e
        inbound = InboundMessage(
            tenant_id=context.tenant_id,
            workflow_id=workflow_type,
            participant_id=context.participant_id,
            payload=payload,
            scope=scope if scope is not None else context.scope,
            metadata={META_A2A: True, META_SENDER_WORKFLOW: context.workflow_type},
        )
        result = await self.router.receive(inbound)
        if not expect_reply:
            return ReceiveResult(message=result.message, handled=result.handled, error=result.error)
        return result
