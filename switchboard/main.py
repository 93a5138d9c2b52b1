"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
No business logic here. See switchboard.core.lifespan and
switchboard.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
optionally clear the get_settings cache) before calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from switchboard.api import webhooks
from switchboard.api.v1 import api_router
from switchboard.application.interfaces.repositories import IRepositoryProvider
from switchboard.application.interfaces.services import ITransport
from switchboard.application.services.workflow_registry import WorkflowRegistry
from switchboard.core.config import get_settings
from switchboard.core.exception_handlers import register_exception_handlers
from switchboard.core.lifespan import create_lifespan
from switchboard.core.limiter import limiter
from switchboard.middleware import (
    CorrelationIDMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
    TenantContextMiddleware,
    TimeoutMiddleware,
)
from switchboard.shared.telemetry.logging import setup_logging

WEBHOOK_PREFIX = "/api/user/webhooks"


def create_app(
    registry: WorkflowRegistry | None = None,
    *,
    provider: IRepositoryProvider | None = None,
    transport: ITransport | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    registry, provider and transport replace the settings-derived parts of
    the service container (embedding and tests).
    """
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.state.registry = registry
    app.state.provider = provider
    app.state.transport = transport

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # Middleware: last added = outermost. Order: timeout → size limit → request ID → correlation ID → security → tenant → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TenantContextMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIDMiddleware, header_name=settings.correlation_id_header)
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
    app.add_middleware(
        TimeoutMiddleware,
        timeout_seconds=settings.request_timeout_seconds,
        exempt_prefixes=(WEBHOOK_PREFIX,),
    )

    app.include_router(api_router, prefix="/api/v1")
    app.include_router(webhooks.router, prefix=WEBHOOK_PREFIX, tags=["webhooks"])

    return app


app = create_app()
