"""Switchboard: multi-tenant, scope-aware conversation threads and message routing."""

__version__ = "0.1.0"
