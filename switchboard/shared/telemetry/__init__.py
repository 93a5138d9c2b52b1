"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from switchboard.shared.telemetry.logging import conversation_extra, get_logger, setup_logging
from switchboard.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    get_tracer,
    set_telemetry,
)
from switchboard.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    set_span_error,
    traced,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "conversation_extra",
    "TelemetryConfig",
    "get_telemetry",
    "set_telemetry",
    "get_tracer",
    "traced",
    "add_span_attributes",
    "add_span_event",
    "set_span_error",
]
