"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "inspirasi-insights"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 8000

    database_url: str = "sqlite:///./inspirasi_analytics.db"

    # Event log persistence
    analytics_storage_backend: str = "sql"  # "sql" or "memory"
    analytics_storage_key: str = "inspirasi_analytics_data"
    analytics_max_events: int = 1000
    analytics_timezone: str = "UTC"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
