"""Tenant ID format validation for path parameters and API keys.

Shared by API dependencies and the tenant context middleware so malformed
tenant IDs are rejected before they reach storage.
"""

import re

# CUID/UUID-style: alphanumeric, hyphen, underscore; max length for SET LOCAL safety.
TENANT_ID_MAX_LENGTH = 64
_TENANT_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{1," + str(TENANT_ID_MAX_LENGTH) + r"}$")


def is_valid_tenant_id_format(value: str) -> bool:
    if not value or len(value) > TENANT_ID_MAX_LENGTH:
        return False
    return bool(_TENANT_ID_RE.fullmatch(value))
