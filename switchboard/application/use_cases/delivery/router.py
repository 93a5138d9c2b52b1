"""Delivery router: inbound dispatch and persist-then-transmit outbound sends."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from switchboard.application.context import WorkflowContext
from switchboard.application.dtos.message import InboundMessage, MessageDraft, ReceiveResult
from switchboard.application.dtos.webhook import WebhookResponse
from switchboard.application.interfaces.services import ITransport
from switchboard.application.services.workflow_registry import WorkflowRegistry
from switchboard.application.use_cases.delivery.message_context import MessageContext
from switchboard.application.use_cases.delivery.webhook_broker import WebhookBroker
from switchboard.application.use_cases.messages.hint_overlay import HintOverlay
from switchboard.application.use_cases.messages.message_store import MessageStore
from switchboard.application.use_cases.messages.scope_index import ScopeIndex
from switchboard.application.use_cases.threads.thread_registry import ThreadRegistry
from switchboard.core.constants import META_SENDER_WORKFLOW, META_SENT_AS
from switchboard.domain.entities.message import (
    ChatPayload,
    DataPayload,
    HandoffPayload,
    MessageEntity,
    MessagePayload,
)
from switchboard.domain.enums import MessageDirection, MessageType
from switchboard.domain.exceptions import DeliveryError, DuplicateResponseError
from switchboard.shared.telemetry.logging import conversation_extra, get_logger
from switchboard.shared.telemetry.tracing import add_span_attributes, set_span_error, traced

if TYPE_CHECKING:
    from switchboard.application.use_cases.tasks.task_service import TaskService

logger = get_logger(__name__)


def chat_or_data(text: str | None, data: Any = None) -> MessagePayload:
    """Chat when there is text, Data when only a structured payload is given."""
    if text:
        return ChatPayload(text=text, data=data)
    if data is not None:
        return DataPayload(data=data)
    return ChatPayload(text="")


class DeliveryRouter:
    """Routes inbound events to workflow handlers and sends outbound messages.

    Every outbound message is appended (with an outbox record) before it is
    handed to the transport. Awaiting each send in turn keeps program order.
    """

    def __init__(
        self,
        *,
        thread_registry: ThreadRegistry,
        message_store: MessageStore,
        scope_index: ScopeIndex,
        hint_overlay: HintOverlay,
        workflow_registry: WorkflowRegistry,
        transport: ITransport,
        webhook_broker: WebhookBroker,
        fallback_message: str,
        task_service_provider: Callable[[], TaskService | None] | None = None,
    ) -> None:
        self.thread_registry = thread_registry
        self.message_store = message_store
        self.scope_index = scope_index
        self.hint_overlay = hint_overlay
        self.workflow_registry = workflow_registry
        self.transport = transport
        self.webhook_broker = webhook_broker
        self.fallback_message = fallback_message
        self._task_service_provider = task_service_provider

    @property
    def task_service(self) -> TaskService | None:
        """Resolve the task service lazily to avoid circular init."""
        if self._task_service_provider is None:
            return None
        return self._task_service_provider()

    # Inbound

    async def receive(self, inbound: InboundMessage) -> ReceiveResult:
        """Persist an inbound event and run its workflow handler."""
        message = await self.accept(inbound)
        return await self.dispatch(message)

    @traced("delivery_router.accept")
    async def accept(self, inbound: InboundMessage) -> MessageEntity:
        """Resolve the thread and append the inbound message; no handler runs.

        Identity errors (InvalidKeyError, TenantMismatchError,
        WorkflowNotFoundError) surface here, before anything is persisted.
        """
        thread = await self.thread_registry.resolve_or_create(
            inbound.tenant_id,
            inbound.workflow_id,
            inbound.participant_id,
            caller_tenant_id=inbound.caller_tenant_id,
        )
        draft = MessageDraft(
            direction=MessageDirection.INCOMING,
            payload=inbound.payload,
            hint=inbound.hint,
            request_id=inbound.request_id,
            authorization=inbound.authorization,
            metadata=dict(inbound.metadata),
        )
        return await self.message_store.append(
            thread.id, inbound.scope, draft, tenant_id=thread.tenant_id
        )

    @traced("delivery_router.dispatch")
    async def dispatch(
        self, message: MessageEntity, *, context: MessageContext | None = None
    ) -> ReceiveResult:
        """Run the handler registered for the message's workflow and type.

        A failing handler is logged with the conversation identity; chat-like
        callers get the fallback reply, webhook callers a 500 response. Pass
        context to watch ctx.replies while the handler is still running.
        """
        add_span_attributes(
            workflow_id=message.workflow_id,
            message_type=message.message_type.value,
            message_id=message.id,
        )
        workflow = self.workflow_registry.get_workflow(message.tenant_id, message.workflow_id)
        handler = workflow.handler_for(message.message_type)
        if handler is None:
            logger.warning(
                "No %s handler on workflow %s; message %s stored without dispatch",
                message.message_type.value,
                message.workflow_id,
                message.id,
                extra=self._extra(message),
            )
            if message.message_type is MessageType.WEBHOOK and message.request_id:
                await self._respond_quietly(
                    message, WebhookResponse.not_found("No webhook handler registered")
                )
            return ReceiveResult(message=message, handled=False)

        ctx = context or MessageContext(message, self)
        try:
            await handler(ctx)
        except Exception as e:
            set_span_error(e)
            logger.exception(
                "Handler for %s failed on message %s (thread=%s scope=%s)",
                message.workflow_id,
                message.id,
                message.thread_id,
                message.scope,
                extra=self._extra(message),
            )
            await self._fallback(ctx, e)
            return ReceiveResult(message=message, replies=list(ctx.replies), handled=False, error=str(e))
        return ReceiveResult(message=message, replies=list(ctx.replies))

    # Outbound

    async def reply(
        self,
        inbound: MessageEntity,
        text: str | None,
        data: Any = None,
        *,
        hint: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> MessageEntity:
        """Reply in the inbound message's thread and scope.

        Raises:
            DeliveryError: transport failed after retries (message stays persisted).
        """
        return await self.send_payload(
            inbound.thread_id,
            inbound.tenant_id,
            inbound.scope,
            chat_or_data(text, data),
            hint=hint,
            metadata=metadata,
        )

    @traced("delivery_router.send_proactive")
    async def send_proactive(
        self,
        context: WorkflowContext,
        participant_id: str,
        text: str | None,
        data: Any = None,
        scope: str | None = None,
        *,
        hint: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> MessageEntity:
        """Send unprompted to a participant; scope defaults to the null scope."""
        thread = await self.thread_registry.resolve_or_create(
            context.tenant_id, context.workflow_type, participant_id
        )
        return await self.send_payload(
            thread.id, thread.tenant_id, scope, chat_or_data(text, data), hint=hint, metadata=metadata
        )

    @traced("delivery_router.send_as_workflow")
    async def send_as_workflow(
        self,
        context: WorkflowContext,
        workflow_name: str,
        participant_id: str,
        text: str | None,
        data: Any = None,
        scope: str | None = None,
        *,
        hint: str | None = None,
    ) -> MessageEntity:
        """Send into the thread of another built-in workflow of the caller's agent.

        Raises:
            WorkflowNotFoundError: no single built-in workflow of that name.
        """
        target = self.workflow_registry.resolve_by_name(
            context.tenant_id, context.agent_name, workflow_name, builtin_only=True
        )
        thread = await self.thread_registry.resolve_or_create(
            context.tenant_id, target.workflow_type, participant_id
        )
        metadata = {META_SENDER_WORKFLOW: context.workflow_type, META_SENT_AS: target.workflow_type}
        return await self.send_payload(
            thread.id, thread.tenant_id, scope, chat_or_data(text, data), hint=hint, metadata=metadata
        )

    async def send_webhook_response(
        self,
        request_id: str,
        status_code: int,
        body: Any = None,
        headers: dict[str, str] | None = None,
        *,
        tenant_id: str | None = None,
    ) -> None:
        """Answer a webhook exactly once; raises DuplicateResponseError on repeats."""
        response = WebhookResponse.custom(status_code, body, headers)
        await self.webhook_broker.respond(request_id, response, tenant_id=tenant_id)

    @traced("delivery_router.send_handoff")
    async def send_handoff(
        self,
        from_message: MessageEntity,
        target_workflow_id: str,
        text: str = "",
        data: Any = None,
    ) -> MessageEntity:
        """Record a hand-off marker naming target_workflow_id in the source thread.

        No execution state moves; the target only needs to be registered.
        """
        self.workflow_registry.get_workflow(from_message.tenant_id, target_workflow_id)
        payload = HandoffPayload(target_workflow_id=target_workflow_id, text=text, data=data)
        return await self.send_payload(
            from_message.thread_id, from_message.tenant_id, from_message.scope, payload
        )

    async def send_payload(
        self,
        thread_id: str,
        tenant_id: str,
        scope: str | None,
        payload: MessagePayload,
        *,
        hint: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> MessageEntity:
        """Append an outgoing message with its outbox record, then transmit it."""
        draft = MessageDraft(
            direction=MessageDirection.OUTGOING,
            payload=payload,
            hint=hint,
            metadata=dict(metadata or {}),
        )
        message = await self.message_store.append(
            thread_id, scope, draft, tenant_id=tenant_id, track_delivery=True
        )
        await self._transmit(message)
        return message

    async def redeliver_pending(self, limit: int = 100) -> int:
        """Transmit outbox records left PENDING (e.g. by a crash). Returns deliveries made."""
        async with self.message_store.provider.transaction(system=True) as repos:
            pending_ids = await repos.deliveries.list_pending(limit)
            messages = [await repos.messages.get_by_id(mid) for mid in pending_ids]
        delivered = 0
        for message in messages:
            if message is None:
                continue
            try:
                await self._transmit(message)
            except DeliveryError:
                logger.warning("Redelivery of message %s failed", message.id, extra=self._extra(message))
            else:
                delivered += 1
        if pending_ids:
            logger.info("Redelivered %d of %d pending message(s)", delivered, len(pending_ids))
        return delivered

    async def _transmit(self, message: MessageEntity) -> None:
        provider = self.message_store.provider
        try:
            await self.transport.transmit(message)
        except DeliveryError as e:
            async with provider.transaction(message.tenant_id) as repos:
                await repos.deliveries.mark_failed(
                    message.id, e.details.get("reason", e.message), e.details.get("attempts", 1)
                )
            raise
        except Exception as e:
            async with provider.transaction(message.tenant_id) as repos:
                await repos.deliveries.mark_failed(message.id, str(e), 1)
            raise DeliveryError(message.id, str(e)) from e
        async with provider.transaction(message.tenant_id) as repos:
            await repos.deliveries.mark_sent(message.id, 1)

    async def _fallback(self, ctx: MessageContext, error: Exception) -> None:
        message = ctx.message
        if message.message_type is MessageType.WEBHOOK:
            if message.request_id:
                await self._respond_quietly(message, WebhookResponse.internal_error())
            return
        try:
            await ctx.reply(self.fallback_message)
        except DeliveryError:
            logger.warning(
                "Fallback reply for message %s could not be delivered", message.id,
                extra=self._extra(message),
            )

    async def _respond_quietly(self, message: MessageEntity, response: WebhookResponse) -> None:
        try:
            await self.send_webhook_response(
                message.request_id,
                response.status_code,
                response.body,
                response.headers,
                tenant_id=message.tenant_id,
            )
        except DuplicateResponseError:
            # the handler answered before it failed; its response stands
            pass

    @staticmethod
    def _extra(message: MessageEntity) -> dict[str, str | None]:
        return conversation_extra(
            tenant_id=message.tenant_id,
            thread_id=message.thread_id,
            scope=message.scope,
            workflow_id=message.workflow_id,
            participant_id=message.participant_id,
        )
