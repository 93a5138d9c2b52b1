"""Request timeout and body size limit middleware (raw ASGI).

Webhook calls wait up to their own timeoutSeconds for the workflow's
response, so paths under exempt_prefixes are not cut off by the global
request timeout.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Callable

from switchboard.middleware._asgi import get_header, send_json_error

logger = logging.getLogger(__name__)


def TimeoutMiddleware(
    app: Callable, timeout_seconds: float, exempt_prefixes: Sequence[str] = ()
) -> Callable:
    """Cancel a request after timeout_seconds and answer 504."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http" or scope.get("path", "").startswith(tuple(exempt_prefixes)):
            await app(scope, receive, send)
            return
        try:
            await asyncio.wait_for(app(scope, receive, send), timeout=float(timeout_seconds))
        except TimeoutError:
            logger.warning(
                "Request timed out after %s seconds: %s %s",
                timeout_seconds,
                scope.get("method", ""),
                scope.get("path", ""),
            )
            await send_json_error(
                send,
                504,
                "GATEWAY_TIMEOUT",
                f"Request timed out after {timeout_seconds} seconds",
                {"timeout_seconds": timeout_seconds},
            )

    return asgi_app


def RequestSizeLimitMiddleware(app: Callable, max_bytes: int) -> Callable:
    """Answer 413 when the body exceeds max_bytes (Content-Length or streamed)."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        declared = get_header(scope, "content-length")
        if declared is not None:
            try:
                length = int(declared)
            except ValueError:
                length = 0
            if length > max_bytes:
                await send_json_error(
                    send,
                    413,
                    "PAYLOAD_TOO_LARGE",
                    f"Request body must be at most {max_bytes} bytes",
                    {"max_bytes": max_bytes, "content_length": length},
                )
                return
            await app(scope, receive, send)
            return

        # No Content-Length: count streamed chunks, then replay them.
        chunks: list[bytes] = []
        total = 0
        while True:
            message = await receive()
            if message["type"] != "http.request":
                break
            body = message.get("body", b"")
            total += len(body)
            if total > max_bytes:
                await send_json_error(
                    send,
                    413,
                    "PAYLOAD_TOO_LARGE",
                    f"Request body must be at most {max_bytes} bytes",
                    {"max_bytes": max_bytes},
                )
                return
            chunks.append(body)
            if not message.get("more_body", False):
                break

        pending = list(chunks) or [b""]

        async def replay() -> dict:
            if pending:
                body = pending.pop(0)
                return {"type": "http.request", "body": body, "more_body": bool(pending)}
            return await receive()

        await app(scope, replay, send)

    return asgi_app
