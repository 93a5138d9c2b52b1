"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (e.g. DATABASE_URL for Postgres,
SECRET_KEY) are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "switchboard"
    app_version: str = "0.1.0"
    debug: bool = False

    # Storage: "postgres" (SQLAlchemy + Alembic) or "memory" (single process, dev/tests)
    database_backend: str = "postgres"
    database_url: str = ""
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None
    db_command_timeout: int | None = None

    # Security: tenant API keys are JWTs signed with secret_key
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    api_key_expire_days: int = 365
    create_tenant_secret: SecretStr | None = None

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Request / middleware
    request_timeout_seconds: int = 60
    max_request_size_bytes: int = 10 * 1024 * 1024
    request_id_header: str = "X-Request-ID"
    correlation_id_header: str = "X-Correlation-ID"

    # Conversations
    history_max_page_size: int = 100
    history_default_page_size: int = 20
    default_workflow_name: str = "Conversational"
    fallback_message: str = "Sorry, something went wrong while handling your message."
    agents_module: str | None = None
    # Admin send: seconds /send waits for the handler; it keeps running afterwards
    send_reply_wait_seconds: float = 10.0

    # Webhooks: seconds the HTTP caller waits for send_webhook_response
    webhook_default_timeout_seconds: float = 30.0
    webhook_max_timeout_seconds: float = 300.0

    # Delivery: "log", "http" (POST to delivery_callback_url) or "redis" (pub/sub)
    delivery_transport: str = "log"
    delivery_callback_url: str | None = None
    delivery_timeout_seconds: float = 10.0
    delivery_max_attempts: int = 3
    delivery_initial_backoff_seconds: float = 0.5
    delivery_backoff_multiplier: float = 2.0
    delivery_max_backoff_seconds: float = 10.0
    redeliver_on_startup: bool = True

    # Redis: tenant cache and conversation event pub/sub
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_max_connections: int = 10
    cache_ttl_tenants: int = 900

    # OpenTelemetry
    telemetry_enabled: bool = True
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate required env, storage backend and delivery transport."""
        if self.database_backend == "postgres":
            if not self.database_url:
                raise ValueError(
                    "DATABASE_URL is required when database_backend is 'postgres'. "
                    "Set in environment or .env file."
                )
        elif self.database_backend != "memory":
            raise ValueError(
                f"database_backend must be 'postgres' or 'memory', got: {self.database_backend!r}"
            )
        if not self.secret_key.get_secret_value():
            raise ValueError("SECRET_KEY is required. Generate with: openssl rand -hex 32.")
        if self.delivery_transport not in ("log", "http", "redis"):
            raise ValueError(
                f"delivery_transport must be 'log', 'http' or 'redis', got: {self.delivery_transport!r}"
            )
        if self.delivery_transport == "http" and not self.delivery_callback_url:
            raise ValueError("DELIVERY_CALLBACK_URL is required when delivery_transport is 'http'.")
        if self.delivery_max_attempts < 1:
            raise ValueError("delivery_max_attempts must be at least 1")
        if self.history_max_page_size < 1:
            raise ValueError("history_max_page_size must be at least 1")
        return self

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.
    """
    return Settings()
