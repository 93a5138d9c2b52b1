"""Shared utilities: UTC datetimes and id generators."""

from switchboard.shared.utils.datetime import deadline_after, ensure_utc, seconds_until, utc_now
from switchboard.shared.utils.generators import digest_token, generate_cuid, generate_task_id

__all__ = [
    "deadline_after",
    "digest_token",
    "ensure_utc",
    "generate_cuid",
    "generate_task_id",
    "seconds_until",
    "utc_now",
]
