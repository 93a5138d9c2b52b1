"""Tenant API keys: JWTs signed with settings.secret_key.

A key carries sub=API_KEY_SUBJECT and the tenant_id claim. The admin API
takes it as a Bearer token, the webhook surface as the apikey parameter.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from switchboard.core.config import get_settings
from switchboard.core.constants import API_KEY_SUBJECT


def create_api_key(tenant_id: str, expires_delta: timedelta | None = None) -> str:
    """Issue an API key for tenant_id (default TTL: settings.api_key_expire_days)."""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(days=settings.api_key_expire_days)
    claims = {
        "sub": API_KEY_SUBJECT,
        "tenant_id": tenant_id,
        "iat": datetime.now(UTC),
        "exp": datetime.now(UTC) + expires_delta,
    }
    encoded = jwt.encode(claims, settings.secret_key.get_secret_value(), algorithm=settings.algorithm)
    return cast(str, encoded)


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode a JWT. Returns the payload.

    Raises:
        ValueError: If token is invalid, expired, or missing required claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if not payload.get("tenant_id"):
        raise ValueError("Token missing required claim: tenant_id")
    return payload


def tenant_id_from_api_key(token: str) -> str:
    """Return the tenant a valid API key was issued for."""
    return str(verify_token(token)["tenant_id"])
