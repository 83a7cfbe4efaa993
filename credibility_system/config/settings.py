"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from credibility_system.config.corroboration import DEFAULT_ADJACENCY_THRESHOLD_METERS


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        supabase_url: Base URL of the hosted Postgres REST backend
        supabase_anon_key: Public (anon) API key for the backend
        supabase_service_role_key: Privileged key, preferred when present
        reports_table: Table holding community reports
        profiles_table: Table holding user profiles and credibility
        adjacency_threshold_meters: Radius within which reports corroborate
        atomic_credibility_increment: Use the store's atomic increment if available
        http_timeout_seconds: Timeout for REST calls
        reports_persistence_path: JSON file backing the local report store
        profiles_persistence_path: JSON file backing the local profile store
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
    """

    supabase_url: str | None = Field(
        default=None,
        description="Hosted Postgres REST base URL, e.g. https://xyz.supabase.co"
    )
    supabase_anon_key: str | None = Field(
        default=None,
        description="Public API key"
    )
    supabase_service_role_key: str | None = Field(
        default=None,
        description="Service role key (bypasses row level security)"
    )
    reports_table: str = Field(
        default="report",
        description="Reports table name"
    )
    profiles_table: str = Field(
        default="profiles",
        description="Profiles table name"
    )
    adjacency_threshold_meters: float = Field(
        default=DEFAULT_ADJACENCY_THRESHOLD_METERS,
        description="Maximum distance in metres for two reports to corroborate"
    )
    atomic_credibility_increment: bool = Field(
        default=False,
        description="Use an atomic increment primitive instead of read-then-upsert"
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for backend HTTP calls"
    )
    reports_persistence_path: str | None = Field(
        default=None,
        description="JSON file for the local report store"
    )
    profiles_persistence_path: str | None = Field(
        default=None,
        description="JSON file for the local profile store"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("adjacency_threshold_meters")
    @classmethod
    def _positive_threshold(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("adjacency_threshold_meters must be positive")
        return value

    @property
    def backend_configured(self) -> bool:
        """True when the hosted backend URL and at least one key are set."""
        return bool(
            self.supabase_url
            and (self.supabase_service_role_key or self.supabase_anon_key)
        )


# Singleton instance - import this throughout the application
settings = Settings()
