"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings

from app.schemas.streak import StreakPolicy


class Settings(BaseSettings):
    """Application configuration.

    Values are read from environment variables (or a `.env` file).
    """

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_key: str
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50
    supabase_postgrest_timeout_seconds: int = 30
    supabase_storage_timeout_seconds: int = 60

    # App
    app_name: str = "Squad Streaks API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:5173"
    enable_scheduler: bool = True

    # Squad-local calendar. Every "today" is resolved in this zone.
    timezone: str = "Asia/Taipei"

    # Streaks
    squad_streak_policy: StreakPolicy
    streak_history_days: int = 70
    heatmap_days: int = 80

    # Workflows
    transaction_max_attempts: int = 3
    check_in_wait_timeout_seconds: float = 5.0
    check_in_wait_poll_seconds: float = 0.25
    workout_image_bucket: str = "workouts"

    # Performance tuning
    auth_token_cache_ttl_seconds: int = 15
    auth_token_cache_max_entries: int = 1024
    slow_request_log_threshold_ms: int = 0
    slow_query_log_threshold_ms: int = 0
    membership_cache_ttl_seconds: int = 20
    binding_cache_ttl_seconds: int = 300
    user_cache_ttl_seconds: int = 30
    data_cache_max_entries: int = 5000

    @field_validator("squad_streak_policy", mode="before")
    @classmethod
    def _normalize_policy(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
