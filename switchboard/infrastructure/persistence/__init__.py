"""Persistence: PostgreSQL storage via SQLAlchemy async."""
