"""
Centralized Settings Configuration

Uses Pydantic Settings to load configuration from environment variables
with validation and type coercion.
"""

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str

    # ESPN site API (scoreboard + summary endpoints)
    espn_site_api_base: str = "https://site.api.espn.com/apis/site/v2/sports/basketball"
    espn_group_id: str = "50"  # NCAA Division I
    espn_page_limit: int = 300
    espn_max_offset: int = 3000

    # Resilience
    retry_max_attempts: int = 3
    retry_backoff_unit: float = 1.0  # attempt * unit -> 1s, 2s, 3s
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout: int = 60
    http_timeout: int = 10

    # Request pacing (jittered minimum interval between upstream calls)
    request_min_interval: float = 0.25
    request_max_interval: float = 0.55

    # Schedule sync
    default_sync_days: int = 14
    max_sync_days: int = 120

    # Startup bootstrap
    bootstrap_on_startup: bool = True
    bootstrap_max_attempts: int = 3
    bootstrap_retry_delay: float = 5.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"
    service_name: str = "cbb-totals-data-platform"

    # Pipeline Auth
    pipeline_api_token: SecretStr

    # Browser origins allowed to call the API (JSON list in the environment)
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8080"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is either json or console."""
        lower_v = v.lower()
        if lower_v not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return lower_v

    @field_validator("request_max_interval")
    @classmethod
    def validate_interval_range(cls, v: float, info) -> float:
        """Pacing upper bound may not sit below the lower bound."""
        lower = info.data.get("request_min_interval", 0.0)
        if v < lower:
            raise ValueError("request_max_interval must be >= request_min_interval")
        return v


def get_settings() -> Settings:
    """
    Get application settings.

    Creates a new Settings instance each time so tests can run
    with different environments.
    """
    return Settings()


# Default settings instance for convenience
# Import this for quick access: from core.settings import settings
settings = Settings()
