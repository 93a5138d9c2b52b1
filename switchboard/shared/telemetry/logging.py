"""Logging configuration for the application."""

import logging
import sys

from switchboard.core.config import get_settings

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO.
    Output goes to stdout. Noisy client libraries are capped at WARNING.
    """
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format=_LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.
    """
    return logging.getLogger(name)


def conversation_extra(
    *,
    tenant_id: str | None = None,
    thread_id: str | None = None,
    scope: str | None = None,
    workflow_id: str | None = None,
    participant_id: str | None = None,
) -> dict[str, str | None]:
    """Structured ``extra`` for log records about one conversation."""
    return {
        "tenant_id": tenant_id,
        "thread_id": thread_id,
        "scope": scope,
        "workflow_id": workflow_id,
        "participant_id": participant_id,
    }
