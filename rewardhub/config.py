from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="REWARDHUB_",
        env_file=".env",
        case_sensitive=False,
    )

    # Store
    store_backend: str = "redis"  # "redis" or "sql"
    redis_url: str = "redis://localhost:6379/0"
    redis_namespace: str = "rewardhub"
    database_url: str = "sqlite:///./rewardhub.db"
    db_pool_size: int = 20
    db_max_overflow: int = 40

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    environment: str = "development"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:5173",
        "http://127.0.0.1:5000",
        "http://127.0.0.1:5173",
    ]

    # Admin
    admin_token: str = ""

    # New Relic
    new_relic_license_key: str = ""
    new_relic_app_name: str = "RewardHub"

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    # Rate limiting
    rate_limit_requests: int = 600
    rate_limit_window: int = 60  # seconds

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
