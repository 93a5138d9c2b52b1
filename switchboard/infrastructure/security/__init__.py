"""Security: tenant API key issuing and verification."""

from switchboard.infrastructure.security.jwt import create_api_key, tenant_id_from_api_key, verify_token

__all__ = ["create_api_key", "tenant_id_from_api_key", "verify_token"]
