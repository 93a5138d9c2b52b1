"""Fixtures for tests against PostgreSQL.

Set TEST_DATABASE_URL (postgresql+asyncpg://...) to a database migrated with
`alembic upgrade head`; otherwise these tests are skipped.
"""

import os

import pytest

from switchboard.core.config import get_settings
from switchboard.core.container import build_container
from switchboard.infrastructure.persistence.database import dispose_engine
from switchboard.infrastructure.persistence.provider import SqlRepositoryProvider
from tests.conftest import RecordingTransport, build_demo_registry


@pytest.fixture
async def sql_container(monkeypatch):
    url = os.environ.get("TEST_DATABASE_URL")
    if not url:
        pytest.skip("TEST_DATABASE_URL not set")
    monkeypatch.setenv("DATABASE_BACKEND", "postgres")
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    container = build_container(
        get_settings(),
        registry=build_demo_registry(),
        provider=SqlRepositoryProvider(),
        transport=RecordingTransport(),
    )
    yield container
    await container.close()
    await dispose_engine()
    get_settings.cache_clear()
