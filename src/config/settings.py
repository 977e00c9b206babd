"""Dashboard service settings loaded from environment variables."""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    """Deployment environment."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


DEFAULT_RESOURCE_ENDPOINTS: dict[str, str] = {
    "work_orders": "/work-orders",
    "clients": "/clients",
    "motorcycles": "/motorcycles",
    "payments": "/payments",
    "services": "/services",
    "parts": "/parts",
    "users": "/users",
}


class Settings(BaseSettings):
    """Application-wide settings loaded from environment variables / .env file.

    The workshop REST backend is the source of truth for every collection;
    only its location and the fetch policy are configured here.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Workshop backend ---
    API_BASE_URL: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the workshop REST backend.",
    )
    API_TOKEN: str = Field(
        default="",
        description="Bearer token used when the caller does not supply one.",
    )
    RESOURCE_ENDPOINTS: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_RESOURCE_ENDPOINTS),
        description="Endpoint path per resource collection.",
    )

    # --- Fetch policy ---
    REQUEST_TIMEOUT_S: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout in seconds.",
    )
    FORBIDDEN_RETRY_DELAY_S: float = Field(
        default=1.0,
        ge=0,
        description="Delay before retrying a resource that answered 403.",
    )
    FORBIDDEN_MAX_RETRIES: int = Field(
        default=1,
        ge=0,
        description="Retries after a 403 before the resource is treated as unavailable.",
    )

    # --- Aggregation ---
    SYNTHETIC_RANKING_FALLBACK: bool = Field(
        default=False,
        description="Fill empty top-N rankings with flagged placeholder counts.",
    )
    TIMEZONE: str = Field(
        default="UTC",
        description="Zone for naive backend timestamps and calendar boundaries.",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level.",
    )

    # --- Environment ---
    ENVIRONMENT: Environment = Field(
        default=Environment.DEV,
        description="Deployment environment (dev/staging/prod).",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == Environment.PROD

    def endpoint_for(self, resource: str) -> str:
        """Return the configured endpoint path for a resource collection."""
        return self.RESOURCE_ENDPOINTS.get(resource, DEFAULT_RESOURCE_ENDPOINTS[resource])


def get_settings() -> Settings:
    """Factory function for dependency injection via FastAPI Depends."""
    return Settings()
