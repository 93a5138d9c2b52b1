"""Webhook broker: exactly-once responses to waiting webhook callers."""

from __future__ import annotations

import asyncio

from switchboard.application.dtos.webhook import WebhookResponse
from switchboard.application.interfaces.repositories import IRepositoryProvider
from switchboard.domain.enums import MessageDirection, MessageType
from switchboard.domain.exceptions import ResourceNotFoundException
from switchboard.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class WebhookBroker:
    """Pairs inbound webhook requests with the response their handler sends.

    The response is recorded under a unique request id before the waiting
    HTTP caller is woken, so a second response for the same id fails with
    DuplicateResponseError even after the caller has gone.
    """

    def __init__(self, provider: IRepositoryProvider) -> None:
        self.provider = provider
        self._waiters: dict[str, asyncio.Future[WebhookResponse]] = {}

    def open(self, request_id: str) -> asyncio.Future[WebhookResponse]:
        """Register a waiter for request_id before the handler runs."""
        fut = self._waiters.get(request_id)
        if fut is None or fut.done():
            fut = asyncio.get_running_loop().create_future()
            self._waiters[request_id] = fut
        return fut

    async def wait(self, request_id: str, timeout: float) -> WebhookResponse | None:
        """Wait for the response; None on timeout."""
        fut = self.open(request_id)
        try:
            return await asyncio.wait_for(asyncio.shield(fut), timeout=timeout)
        except TimeoutError:
            logger.warning("Webhook request %s timed out after %.1fs", request_id, timeout)
            return None
        finally:
            self._waiters.pop(request_id, None)

    async def respond(
        self, request_id: str, response: WebhookResponse, *, tenant_id: str | None = None
    ) -> None:
        """Record the single response for request_id and wake the caller.

        Raises:
            ResourceNotFoundException: no inbound webhook carried request_id.
            DuplicateResponseError: a response was already recorded.
        """
        async with self.provider.transaction(tenant_id) as repos:
            inbound = await repos.messages.get_by_request_id(request_id)
            if (
                inbound is None
                or inbound.direction is not MessageDirection.INCOMING
                or inbound.message_type is not MessageType.WEBHOOK
                or (tenant_id is not None and inbound.tenant_id != tenant_id)
            ):
                raise ResourceNotFoundException("webhook_request", request_id)
            await repos.webhook_responses.record(inbound.tenant_id, request_id, response)

        fut = self._waiters.get(request_id)
        if fut is not None and not fut.done():
            fut.set_result(response)
        logger.info("Webhook response %d recorded for request %s", response.status_code, request_id)

    async def get_response(self, request_id: str, *, tenant_id: str | None = None) -> WebhookResponse | None:
        async with self.provider.transaction(tenant_id) as repos:
            return await repos.webhook_responses.get(request_id)

    def cancel_all(self) -> int:
        """Cancel every open waiter (shutdown). Returns the number cancelled."""
        count = 0
        for fut in self._waiters.values():
            if not fut.done():
                fut.cancel()
                count += 1
        self._waiters.clear()
        return count
