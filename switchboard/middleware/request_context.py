"""Request ID, correlation ID and security header middleware (raw ASGI).

Request IDs from clients are sanitized (length + character set) to prevent
log injection; the correlation ID falls back to the request ID.
"""

import re
import uuid
from typing import Callable

from switchboard.middleware._asgi import get_header, with_response_headers

REQUEST_ID_MAX_LENGTH = 64
REQUEST_ID_ALLOWED_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1," + str(REQUEST_ID_MAX_LENGTH) + r"}$")

DEFAULT_SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'none'",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _sanitize_request_id(raw: str | None) -> str:
    if not raw or not REQUEST_ID_ALLOWED_PATTERN.match(raw.strip()):
        return str(uuid.uuid4())
    return raw.strip()[:REQUEST_ID_MAX_LENGTH]


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Add or forward the request ID on each request (scope state) and response."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = _sanitize_request_id(get_header(scope, header_name))
        scope.setdefault("state", {})["request_id"] = request_id
        await app(scope, receive, with_response_headers(send, [(header_name.encode(), request_id.encode())]))

    return asgi_app


def CorrelationIDMiddleware(app: Callable, header_name: str = "X-Correlation-ID") -> Callable:
    """Forward the correlation ID, else reuse the request ID, else generate one."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        state = scope.setdefault("state", {})
        raw = get_header(scope, header_name)
        if raw:
            correlation_id = _sanitize_request_id(raw)
        else:
            correlation_id = state.get("request_id") or str(uuid.uuid4())
        state["correlation_id"] = correlation_id
        await app(
            scope, receive, with_response_headers(send, [(header_name.encode(), correlation_id.encode())])
        )

    return asgi_app


def SecurityHeadersMiddleware(app: Callable, headers: dict[str, str] | None = None) -> Callable:
    resolved = headers if headers is not None else DEFAULT_SECURITY_HEADERS.copy()
    header_list = [(k.encode(), v.encode()) for k, v in resolved.items()]

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        await app(scope, receive, with_response_headers(send, header_list))

    return asgi_app
