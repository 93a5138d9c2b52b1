"""User webhook surface: POST /api/user/webhooks/builtin.

The caller authenticates with the apikey query parameter and addresses a
built-in workflow by agentName and workflowName. The JSON body becomes a
webhook message; the HTTP response is whatever the workflow's webhook
handler sends with send_webhook_response, or 504 after timeoutSeconds.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, Request
from fastapi.responses import JSONResponse

from switchboard.api.v1.dependencies import Container, authenticate_api_key
from switchboard.application.dtos.message import InboundMessage
from switchboard.core.config import get_settings
from switchboard.core.constants import META_AGENT_NAME, META_WEBHOOK_NAME
from switchboard.core.limiter import limit_webhook
from switchboard.domain.entities.message import WebhookPayload
from switchboard.domain.exceptions import ValidationException
from switchboard.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

router = APIRouter()


def resolve_timeout(timeout_seconds: float | None) -> float:
    """Requested wait, defaulted and capped by settings; must be positive."""
    settings = get_settings()
    if timeout_seconds is None:
        return settings.webhook_default_timeout_seconds
    if timeout_seconds <= 0:
        raise ValidationException("timeoutSeconds must be positive", field="timeoutSeconds")
    return min(timeout_seconds, settings.webhook_max_timeout_seconds)


@router.post("/builtin")
@limit_webhook
async def builtin_webhook(
    request: Request,
    container: Container,
    apikey: Annotated[str, Query(min_length=1)],
    agent_name: Annotated[str, Query(alias="agentName", min_length=1)],
    workflow_name: Annotated[str, Query(alias="workflowName", min_length=1)],
    webhook_name: Annotated[str, Query(alias="webhookName", min_length=1)],
    participant_id: Annotated[str, Query(alias="participantId", min_length=1)],
    body: Annotated[Any, Body()] = None,
    scope: Annotated[str | None, Query()] = None,
    authorization: Annotated[str | None, Query()] = None,
    timeout_seconds: Annotated[float | None, Query(alias="timeoutSeconds")] = None,
) -> JSONResponse:
    """Route a webhook call to a built-in workflow and wait for its response."""
    tenant_id = authenticate_api_key(apikey)
    tenant = await container.tenants.get_active_tenant(tenant_id)
    workflow = container.workflow_registry.resolve_by_name(
        tenant.id, agent_name, workflow_name, builtin_only=True
    )
    timeout = resolve_timeout(timeout_seconds)

    request_id = generate_cuid()
    message = await container.router.accept(
        InboundMessage(
            tenant_id=tenant.id,
            workflow_id=workflow.workflow_type,
            participant_id=participant_id,
            payload=WebhookPayload(name=webhook_name, body=body),
            scope=scope,
            request_id=request_id,
            authorization=authorization,
            metadata={META_AGENT_NAME: agent_name, META_WEBHOOK_NAME: webhook_name},
        )
    )
    container.webhook_broker.open(request_id)
    container.runner.spawn(container.router.dispatch(message), instance_id=f"webhook:{request_id}")

    response = await container.webhook_broker.wait(request_id, timeout)
    if response is None:
        return JSONResponse(
            status_code=504,
            content={
                "error": "WEBHOOK_TIMEOUT",
                "message": f"No webhook response within {timeout} seconds",
                "details": {"request_id": request_id, "timeout_seconds": timeout},
            },
        )
    return JSONResponse(
        status_code=response.status_code, content=response.body, headers=response.headers or None
    )
