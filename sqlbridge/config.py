"""Service settings, read from the environment and an optional ``.env`` file."""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore")

    APP_NAME: str = "SQLBridge Connector Service"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: Environment = Environment.DEVELOPMENT
    DEBUG: bool = False

    # The service is meant to sit next to a desktop client, so it binds locally
    HOST: str = "127.0.0.1"
    PORT: int = 8002

    # Connections
    CONNECT_TIMEOUT: float = Field(default=10.0, gt=0, description="Handshake timeout for network backends, seconds")
    SQLITE_TIMEOUT: float = Field(default=5.0, gt=0, description="How long SQLite waits on a locked file, seconds")
    DEFAULT_PAGE_SIZE: int = Field(default=500, ge=1, description="Page size of paging_query when none is given")
    FIND_MAX_RESULTS: int = Field(default=1000, ge=1, description="Upper bound on rows returned by find")

    # Logging
    LOG_LEVEL: LogLevel = LogLevel.INFO
    LOG_FORMAT: str = Field(default="json", pattern="^(json|text)$")
    SLOW_REQUEST_MS: int = Field(default=5000, ge=0, description="Requests at least this slow are logged as warnings")

    # Tracing
    OTEL_SERVICE_NAME: str = "sqlbridge"
    OTEL_SERVICE_VERSION: str = "0.1.0"
    TRACING_ENABLED: bool = False
    OTLP_ENDPOINT: Optional[str] = "http://localhost:4317"
    TRACE_SAMPLING_RATE: float = Field(default=1.0, ge=0.0, le=1.0)

    # Prometheus
    ENABLE_METRICS: bool = True


settings = Settings()
