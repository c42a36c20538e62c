"""Configuration management using Pydantic settings."""

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
    app_name: str = "ENODIA"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Overpass API
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    overpass_timeout: float = 60.0        # HTTP timeout, seconds
    area_query_timeout: int = 25          # Overpass [timeout:N] for the area lookup
    fetch_query_timeout: int = 50         # Overpass [timeout:N] for the geometry fetch
    user_agent: str = "ENODIA-INFRA/0.1.0"

    # Administrative area to ingest
    area_name: str = "Kennebec County"
    admin_level: int = 6

    # Ingestion
    ingest_on_startup: bool = True
    ingest_max_retries: int = 2
    ingest_retry_backoff: float = 2.0     # seconds, doubles per retry

    # Layers and proximity
    default_enabled_category: str = "electricity"
    proximity_threshold_m: float = 500.0


settings = Settings()
