"""Admin messaging API: send into a built-in workflow and read conversation state.

Workflows are addressed by agentName plus a short workflowName (built-in
workflows only; default from settings). Threads are keyed by
(tenant, workflow, participantId).
"""

import asyncio
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query, Request

from switchboard.api.v1.dependencies import Container, CurrentTenant
from switchboard.application.dtos.message import InboundMessage, ReceiveResult
from switchboard.application.services.workflow_registry import WorkflowDefinition
from switchboard.application.use_cases.delivery.message_context import MessageContext
from switchboard.core.config import get_settings
from switchboard.core.constants import META_ACTIVATION_NAME, META_AGENT_NAME, META_WEBHOOK_NAME
from switchboard.core.container import ServiceContainer
from switchboard.core.limiter import limit_send
from switchboard.domain.entities.message import (
    ChatPayload,
    DataPayload,
    MessagePayload,
    WebhookPayload,
    payload_from_wire,
)
from switchboard.domain.enums import MessageType
from switchboard.domain.exceptions import ResourceNotFoundException
from switchboard.schemas.messaging import (
    HintResponse,
    HistoryResponse,
    MessageResponse,
    ScopesResponse,
    SendMessageRequest,
    SendMessageResponse,
    ThreadResponse,
)
from switchboard.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

router = APIRouter()

AgentName = Annotated[str, Query(alias="agentName", min_length=1)]
WorkflowName = Annotated[str | None, Query(alias="workflowName")]
ParticipantId = Annotated[str, Query(alias="participantId", min_length=1)]
Scope = Annotated[str | None, Query()]
Page = Annotated[int, Query(ge=1)]
PageSize = Annotated[int | None, Query(alias="pageSize", ge=1)]


def _resolve_workflow(
    container: ServiceContainer, tenant_id: str, agent_name: str, workflow_name: str | None
) -> WorkflowDefinition:
    name = workflow_name or get_settings().default_workflow_name
    return container.workflow_registry.resolve_by_name(tenant_id, agent_name, name, builtin_only=True)


def build_payload(body: SendMessageRequest) -> MessagePayload:
    """Map the admin send body onto a message payload for its type."""
    if body.type == "Chat":
        if isinstance(body.data, str):
            return ChatPayload(text=body.data)
        return ChatPayload(text=body.text or "", data=body.data)
    if body.type == "Data":
        return DataPayload(data=body.data, text=body.text or "")
    if body.type == "File":
        return payload_from_wire(MessageType.FILE, body.text, body.data)
    return WebhookPayload(
        name=body.webhook_name or body.activation_name, body=body.data, text=body.text or ""
    )


@router.post("/send", response_model=SendMessageResponse)
@limit_send
async def send_message(
    request: Request,
    body: SendMessageRequest,
    tenant: CurrentTenant,
    container: Container,
):
    """Deliver an inbound message to a built-in workflow and return its replies.

    The handler runs detached from the request: after send_reply_wait_seconds
    the replies sent so far are returned with completed=false and the handler
    keeps going, so a HITL wait outlives the HTTP call.
    """
    workflow = _resolve_workflow(container, tenant.id, body.agent_name, body.workflow_name)
    payload = build_payload(body)
    metadata: dict[str, Any] = {
        META_AGENT_NAME: body.agent_name,
        META_ACTIVATION_NAME: body.activation_name,
    }
    request_id = None
    if isinstance(payload, WebhookPayload):
        metadata[META_WEBHOOK_NAME] = payload.name
        request_id = generate_cuid()
    message = await container.router.accept(
        InboundMessage(
            tenant_id=tenant.id,
            workflow_id=workflow.workflow_type,
            participant_id=body.participant_id,
            payload=payload,
            scope=body.scope,
            hint=body.hint,
            request_id=request_id,
            authorization=body.authorization,
            metadata=metadata,
            caller_tenant_id=tenant.id,
        )
    )
    ctx = MessageContext(message, container.router)
    handler_task = container.runner.spawn(
        container.router.dispatch(message, context=ctx), instance_id=f"send:{message.id}"
    )
    done, _ = await asyncio.wait({handler_task}, timeout=get_settings().send_reply_wait_seconds)
    completed = handler_task in done
    if completed:
        result = handler_task.result()
    else:
        result = ReceiveResult(message=message, replies=list(ctx.replies))
    logger.info(
        "Admin send: tenant=%s workflow=%s type=%s handled=%s completed=%s",
        tenant.id,
        workflow.workflow_type,
        body.type,
        result.handled,
        completed,
    )
    return SendMessageResponse.from_result(result, completed=completed)


@router.get("/threads", response_model=list[ThreadResponse])
async def list_threads(
    tenant: CurrentTenant,
    container: Container,
    agent_name: AgentName,
    workflow_name: WorkflowName = None,
    page: Page = 1,
    page_size: PageSize = None,
):
    """Threads of one workflow, newest first."""
    workflow = _resolve_workflow(container, tenant.id, agent_name, workflow_name)
    size = min(page_size or get_settings().history_default_page_size, get_settings().history_max_page_size)
    threads = await container.thread_registry.list_threads(
        tenant.id, workflow.workflow_type, skip=(page - 1) * size, limit=size
    )
    return [ThreadResponse.from_entity(t) for t in threads]


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    tenant: CurrentTenant,
    container: Container,
    agent_name: AgentName,
    participant_id: ParticipantId,
    workflow_name: WorkflowName = None,
    scope: Scope = None,
    page: Page = 1,
    page_size: PageSize = None,
):
    """One page of (thread, scope) history, newest first. Unknown threads read as empty."""
    workflow = _resolve_workflow(container, tenant.id, agent_name, workflow_name)
    size = page_size or get_settings().history_default_page_size
    thread = await container.thread_registry.find(tenant.id, workflow.workflow_type, participant_id)
    messages = []
    if thread is not None:
        messages = await container.scope_index.history(
            thread.id, scope, page, size, tenant_id=tenant.id
        )
    return HistoryResponse(
        thread_id=thread.id if thread else None,
        scope=scope,
        page=page,
        page_size=min(size, container.scope_index.max_page_size),
        messages=[MessageResponse.from_entity(m) for m in messages],
    )


@router.get("/scopes", response_model=ScopesResponse)
async def list_scopes(
    tenant: CurrentTenant,
    container: Container,
    agent_name: AgentName,
    participant_id: ParticipantId,
    workflow_name: WorkflowName = None,
):
    """Scope values a thread has used; null is the unscoped bucket."""
    workflow = _resolve_workflow(container, tenant.id, agent_name, workflow_name)
    thread = await container.thread_registry.find(tenant.id, workflow.workflow_type, participant_id)
    if thread is None:
        return ScopesResponse(thread_id=None, scopes=[])
    scopes = await container.scope_index.list_scopes(thread.id, tenant_id=tenant.id)
    return ScopesResponse(thread_id=thread.id, scopes=scopes)


@router.get("/hint", response_model=HintResponse)
async def get_hint(
    tenant: CurrentTenant,
    container: Container,
    agent_name: AgentName,
    participant_id: ParticipantId,
    workflow_name: WorkflowName = None,
    scope: Scope = None,
):
    """Last hint of a (thread, scope)."""
    workflow = _resolve_workflow(container, tenant.id, agent_name, workflow_name)
    thread = await container.thread_registry.find(tenant.id, workflow.workflow_type, participant_id)
    if thread is None:
        raise ResourceNotFoundException("thread", f"{workflow.workflow_type}/{participant_id}")
    hint = await container.hint_overlay.get_last_hint(thread.id, scope, tenant_id=tenant.id)
    return HintResponse(thread_id=thread.id, scope=scope, hint=hint)
