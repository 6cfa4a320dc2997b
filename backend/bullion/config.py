"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from bullion.constants import MatchingPolicy, ShortfallMode


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite:///./bullion_ledger.db"
    db_echo: bool = False

    # Lot accounting
    matching_policy: MatchingPolicy = MatchingPolicy.CHEAPEST_FIRST
    shortfall_mode: ShortfallMode = ShortfallMode.STRICT
    commit_retry_attempts: int = 3  # Optimistic-concurrency retries per mutation

    # Application
    log_level: str = "INFO"
    debug: bool = True

    # CORS
    allowed_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


settings = Settings()
