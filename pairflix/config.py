"""Configuration settings for PairFlix."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "PairFlix"
    port: int = 3000
    log_level: str = "INFO"
    timezone: str = "UTC"  # Timezone for timestamps (e.g., "America/New_York", "Europe/London")
    environment: str = "development"  # development, test, production

    # Database
    database_url: str = "sqlite+aiosqlite:////data/pairflix.db"

    # Application settings cache
    settings_cache_ttl_seconds: int = 3600  # 1 hour

    # CORS settings
    cors_origins: str = '["http://localhost:5173", "http://localhost:5174"]'


settings = Settings()
