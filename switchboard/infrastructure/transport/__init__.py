"""Outbound delivery transports and retry policy."""

from switchboard.infrastructure.transport.retry_policy import RetryPolicy
from switchboard.infrastructure.transport.transports import (
    HttpCallbackTransport,
    LogOnlyTransport,
    RedisTransport,
    RetryingTransport,
    delivery_payload,
)

__all__ = [
    "HttpCallbackTransport",
    "LogOnlyTransport",
    "RedisTransport",
    "RetryPolicy",
    "RetryingTransport",
    "delivery_payload",
]
