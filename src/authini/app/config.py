"""
Configuration Module for Authini

This module defines the configuration system for the Authini service, using Pydantic for
settings validation and dependency injection through aiohttp AppKeys.

The Settings class is loaded from environment variables with defaults suitable for
development environments. Application components access settings and shared resources
through typed AppKeys; the broker itself never reads the environment and receives its
configuration at construction.

Key configuration areas include:
- Service networking and the administrative shared secret
- Database connection and timeouts
- Session backend selection (local store or relay)
- Credential lengths and the advisory session expiry hint
- Monitoring and error reporting
"""

from typing import Final, Literal, Optional
import logging
from pydantic import (
    AliasChoices,
    Field,
    PostgresDsn,
    model_validator,
)
from pydantic_settings import BaseSettings
from aiohttp import web
from aiohttp import ClientSession
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    AsyncSession,
)

from authini.metrics import MetricsClient
from authini.broker.service import BrokerConfig, SessionBroker


logger = logging.getLogger(__name__)

CODE_MAX_LENGTH = 32
CREDENTIAL_MAX_LENGTH = 255


class Settings(BaseSettings):
    """
    Application settings for the Authini service.

    Settings are organized into the following categories:
    - Environment and debugging
    - Network and administrative access
    - Database connection
    - Session backend and credentials
    - Monitoring and error reporting
    """

    # Environment and debugging settings
    debug: bool = False
    """
    Enable debug mode for verbose logging and development features.
    Set with DEBUG=true environment variable.
    """

    allowed_origins: str = "*"
    """
    Comma-separated list of origins allowed for CORS, or `*` for any origin.
    Set with ALLOWED_ORIGINS environment variable.
    """

    # Network and administrative access
    http_port: int = Field(alias="port", default=8080)
    """
    HTTP port for the service to listen on.
    Set with PORT environment variable.
    """

    admin_token: str
    """
    Shared static bearer credential for administrative routes (required, no default).
    Set with ADMIN_TOKEN environment variable.
    """

    # Database connection
    pg_dsn: PostgresDsn = Field(
        "postgresql+asyncpg://postgres:password@db/authini",
        validation_alias=AliasChoices("pg_dsn", "database_url"),
    )  # type: ignore
    """
    PostgreSQL connection string for database access.
    Set with PG_DSN or DATABASE_URL environment variables.
    """

    database_timeout: float = 5.0
    """
    Connect and per-statement timeout in seconds for the database.
    Set with DATABASE_TIMEOUT environment variable.
    """

    # Session backend and credentials
    session_backend: Literal["local", "relay"] = "local"
    """
    Which session model serves session start: the local session store or a remote
    authorization service. Exactly one is active.
    Set with SESSION_BACKEND environment variable.
    """

    session_expires_in_min: int = 60
    """
    Advisory expiry hint, in minutes, returned when a session starts. Not enforced.
    Set with SESSION_EXPIRES_IN_MIN environment variable.
    """

    code_length: int = 32
    """Length of authorization codes. Set with CODE_LENGTH environment variable."""

    secret_length: int = 64
    """Length of client secrets. Set with SECRET_LENGTH environment variable."""

    token_length: int = 255
    """Length of bearer tokens. Set with TOKEN_LENGTH environment variable."""

    relay_url: str = "http://localhost:8080"
    """
    Address of the remote authorization service, used when session_backend is relay.
    Set with RELAY_URL environment variable.
    """

    relay_token: Optional[str] = None
    """
    Bearer credential for the remote authorization service.
    Set with RELAY_TOKEN environment variable.
    """

    relay_timeout: float = 10.0
    """
    Total timeout in seconds for calls to the remote authorization service.
    Set with RELAY_TIMEOUT environment variable.
    """

    # Monitoring and error reporting
    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    metrics_backend: Literal["telegraf", "none"] = "none"
    """
    Metrics backend. Set with METRICS_BACKEND environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    statsd_prefix: str = "authini"
    """
    Prefix for all StatsD metrics from this service.
    Set with STATSD_PREFIX environment variable.
    """

    @model_validator(mode="after")
    def check_credential_lengths(self) -> "Settings":
        """
        Codes must be shorter than secrets, and secrets shorter than tokens, and each
        must fit its column.
        """
        if not 0 < self.code_length < self.secret_length < self.token_length:
            raise ValueError(
                "credential lengths must satisfy 0 < code_length < secret_length < token_length"
            )
        if self.code_length > CODE_MAX_LENGTH:
            raise ValueError(f"code_length must be at most {CODE_MAX_LENGTH}")
        if self.token_length > CREDENTIAL_MAX_LENGTH:
            raise ValueError(f"token_length must be at most {CREDENTIAL_MAX_LENGTH}")
        return self

    def broker_config(self) -> BrokerConfig:
        return BrokerConfig(
            code_length=self.code_length,
            secret_length=self.secret_length,
            token_length=self.token_length,
            expires_in_min=self.session_expires_in_min,
        )

    def cors_origins(self) -> set[str]:
        return {
            origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()
        }


# Application context keys for dependency injection
SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

DatabaseAppKey: Final = web.AppKey("database", AsyncEngine)
"""AppKey for accessing the SQLAlchemy async database engine"""

DatabaseSessionMakerAppKey: Final = web.AppKey(
    "database_session_maker", async_sessionmaker[AsyncSession]
)
"""AppKey for accessing the SQLAlchemy async session factory"""

SessionAppKey: Final = web.AppKey("http_session", ClientSession)
"""AppKey for accessing the shared aiohttp client session"""

MetricsClientAppKey: Final = web.AppKey("metrics_client", MetricsClient)
"""AppKey for accessing the metrics client"""

SessionBrokerAppKey: Final = web.AppKey("session_broker", SessionBroker)
"""AppKey for accessing the session broker"""
