"""Webhook response DTO with status shortcuts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class WebhookResponse:
    """HTTP response a webhook handler sends back to the waiting caller."""

    status_code: int = 200
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def ok(cls, body: Any = None) -> WebhookResponse:
        return cls(200, body)

    @classmethod
    def bad_request(cls, message: str = "Bad request") -> WebhookResponse:
        return cls(400, {"error": "BAD_REQUEST", "message": message})

    @classmethod
    def not_found(cls, message: str = "Not found") -> WebhookResponse:
        return cls(404, {"error": "NOT_FOUND", "message": message})

    @classmethod
    def internal_error(cls, message: str = "Internal server error") -> WebhookResponse:
        return cls(500, {"error": "INTERNAL_ERROR", "message": message})

    @classmethod
    def custom(
        cls, status_code: int, body: Any = None, headers: dict[str, str] | None = None
    ) -> WebhookResponse:
        return cls(status_code, body, dict(headers or {}))
