"""Application lifespan: startup and shutdown.

Single place for startup/shutdown wiring. No business logic here: Redis
cache and publisher, telemetry, the service container, wait recovery.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from switchboard.core.config import get_settings
from switchboard.core.container import build_container

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: Redis cache and publisher (if enabled), telemetry (if
    enabled), container build, pending wait recovery and redelivery.
    Shutdown order: container close (workflows, timers, transport, storage),
    Redis disconnect, telemetry shutdown.
    """
    settings = get_settings()

    # ---- Startup ----
    cache = None
    publisher = None
    if settings.redis_enabled:
        from switchboard.infrastructure.cache.redis_cache import CacheService
        from switchboard.infrastructure.messaging.redis_pubsub import ConversationEventPublisher

        cache = CacheService()
        await cache.connect()
        publisher = ConversationEventPublisher()
        await publisher.connect()
    app.state.cache = cache

    if settings.telemetry_enabled:
        from switchboard.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig.from_settings(settings)
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        if settings.redis_enabled:
            telemetry.instrument_redis()
        if settings.database_backend == "postgres":
            from switchboard.infrastructure.persistence.database import get_engine

            engine = get_engine()
            if engine is not None:
                telemetry.instrument_sqlalchemy(engine)
        logger.info("Telemetry initialized")

    container = build_container(
        settings,
        registry=getattr(app.state, "registry", None),
        provider=getattr(app.state, "provider", None),
        transport=getattr(app.state, "transport", None),
        publisher=publisher if publisher is not None and publisher.is_available() else None,
        cache=cache if cache is not None and cache.is_available() else None,
    )
    app.state.container = container
    await container.start()
    logger.info(
        "%s started: backend=%s transport=%s workflows=%d",
        settings.app_name,
        settings.database_backend,
        settings.delivery_transport,
        len(container.workflow_registry.list_workflows(None)),
    )

    yield

    # ---- Shutdown ----
    await container.close()
    logger.info("Service container closed")

    if publisher is not None:
        await publisher.disconnect()
    if cache is not None:
        await cache.disconnect()
        logger.info("Cache disconnected")

    from switchboard.shared.telemetry.telemetry import get_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        logger.info("Telemetry shutdown complete")
