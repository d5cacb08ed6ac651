from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    firecrawl_api_key: str = ""
    anthropic_api_key: str = ""  # Only needed for the "claude" extraction backend

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    events_table: str = "scraped_events"

    # Extraction
    extraction_backend: str = "firecrawl"
    firecrawl_api_url: str = "https://api.firecrawl.dev/v1/scrape"
    llm_model: str = "claude-sonnet-4-20250514"
    extraction_timeout_seconds: float = 60.0
    max_concurrency: int = 1

    # Batch table
    csv_url_column: int = 1
    page_size: int = 50
    export_batch_size: int = 500

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
