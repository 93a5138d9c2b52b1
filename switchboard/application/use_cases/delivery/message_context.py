"""Handler-facing context for one inbound message."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from switchboard.application.context import WorkflowContext
from switchboard.application.dtos.task import WaitHandle, WaitResult
from switchboard.application.dtos.webhook import WebhookResponse
from switchboard.domain.entities.message import MessageEntity, MessagePayload, WebhookPayload
from switchboard.domain.exceptions import ValidationException

if TYPE_CHECKING:
    from switchboard.application.use_cases.delivery.router import DeliveryRouter


class MessageContext:
    """What a workflow handler sees: the message plus conversation operations.

    Replies go to the message's thread and scope. Every message sent through
    this context is collected in ``replies`` in send order.
    """

    def __init__(self, message: MessageEntity, router: DeliveryRouter) -> None:
        self.message = message
        self.router = router
        self.replies: list[MessageEntity] = []

    @property
    def context(self) -> WorkflowContext:
        m = self.message
        return WorkflowContext(
            tenant_id=m.tenant_id,
            workflow_type=m.workflow_id,
            participant_id=m.participant_id,
            scope=m.scope,
            thread_id=m.thread_id,
            request_id=m.request_id,
        )

    @property
    def tenant_id(self) -> str:
        return self.message.tenant_id

    @property
    def participant_id(self) -> str:
        return self.message.participant_id

    @property
    def scope(self) -> str | None:
        return self.message.scope

    @property
    def thread_id(self) -> str:
        return self.message.thread_id

    @property
    def text(self) -> str:
        return self.message.text

    @property
    def data(self) -> Any:
        return self.message.data

    @property
    def payload(self) -> MessagePayload:
        return self.message.payload

    @property
    def hint(self) -> str | None:
        return self.message.hint

    async def reply(self, text: str | None, data: Any = None, *, hint: str | None = None) -> MessageEntity:
        sent = await self.router.reply(self.message, text, data, hint=hint)
        self.replies.append(sent)
        return sent

    async def reply_with_data(self, data: Any, text: str = "") -> MessageEntity:
        return await self.reply(text, data)

    async def send_handoff(self, target_workflow_id: str, text: str = "", data: Any = None) -> MessageEntity:
        sent = await self.router.send_handoff(self.message, target_workflow_id, text, data)
        self.replies.append(sent)
        return sent

    async def respond(self, response: WebhookResponse) -> None:
        """Answer the webhook this message came from (exactly once)."""
        if not isinstance(self.message.payload, WebhookPayload) or not self.message.request_id:
            raise ValidationException("Only webhook messages can be responded to", field="request_id")
        await self.router.send_webhook_response(
            self.message.request_id,
            response.status_code,
            response.body,
            response.headers,
            tenant_id=self.message.tenant_id,
        )

    async def get_history(self, page: int = 1, page_size: int = 10) -> list[MessageEntity]:
        """History of this message's (thread, scope), newest first."""
        return await self.router.scope_index.history(
            self.thread_id, self.scope, page, page_size, tenant_id=self.tenant_id
        )

    async def get_last_hint(self) -> str | None:
        return await self.router.hint_overlay.get_last_hint(
            self.thread_id, self.scope, tenant_id=self.tenant_id
        )

    async def set_hint(self, hint: str) -> None:
        await self.router.hint_overlay.set_hint(self.thread_id, self.scope, hint, tenant_id=self.tenant_id)

    async def create_task(
        self,
        title: str,
        *,
        description: str | None = None,
        draft_work: Any = None,
        actions: tuple[str, ...] | None = None,
        timeout_seconds: float | None = None,
        survive_parent_close: bool = False,
    ) -> WaitHandle:
        """Start a HITL task for this participant and notify them in this scope."""
        tasks = self.router.task_service
        if tasks is None:
            raise ValidationException("Task service is not configured", field="tasks")
        handle, notification = await tasks.create_task(
            self.context,
            title=title,
            description=description,
            draft_work=draft_work,
            actions=actions,
            timeout_seconds=timeout_seconds,
            survive_parent_close=survive_parent_close,
        )
        if notification is not None:
            self.replies.append(notification)
        return handle

    async def await_task(self, handle: WaitHandle) -> WaitResult:
        tasks = self.router.task_service
        if tasks is None:
            raise ValidationException("Task service is not configured", field="tasks")
        return await tasks.get_result(handle)
