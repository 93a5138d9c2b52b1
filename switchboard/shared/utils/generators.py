"""ID and value generators (e.g. CUID)."""

import hashlib

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_task_id() -> str:
    """Task ids double as conversation hints, so they carry a readable prefix."""
    return f"task-{generate_cuid()}"


def digest_token(token: str | None) -> str | None:
    """SHA-256 hex digest of an opaque token; tokens are never stored in cleartext."""
    if not token:
        return None
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
