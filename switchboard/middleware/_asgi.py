"""Helpers shared by the raw ASGI middleware."""

import json
from typing import Any, Callable


def get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


async def send_json_error(
    send: Callable, status: int, error: str, message: str, details: dict[str, Any]
) -> None:
    body = json.dumps({"error": error, "message": message, "details": details}).encode()
    await send({
        "type": "http.response.start",
        "status": status,
        "headers": [(b"content-type", b"application/json")],
    })
    await send({"type": "http.response.body", "body": body, "more_body": False})


def with_response_headers(send: Callable, extra: list[tuple[bytes, bytes]]) -> Callable:
    """Wrap send so extra headers are added to the response start (existing names win)."""

    async def send_wrapper(message: dict) -> None:
        if message["type"] == "http.response.start":
            headers = list(message.get("headers", []))
            seen = {h[0].lower() for h in headers}
            for name_b, value_b in extra:
                if name_b.lower() not in seen:
                    headers.append((name_b, value_b))
                    seen.add(name_b.lower())
            message["headers"] = headers
        await send(message)

    return send_wrapper
