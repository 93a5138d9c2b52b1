"""API v1: admin tenants, messaging and tasks."""

from switchboard.api.v1.router import api_router

__all__ = ["api_router"]
