"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "downtime-patterns"
    debug: bool = False
    log_level: str = "INFO"

    # Rapid recurrence
    default_threshold_minutes: float = 20.0
    top_reason_limit: int = 15

    # Transition matrix
    default_top_n: int = 12

    # Event retrieval ceiling
    max_events: int = 50_000
    fetch_chunk_size: int = 10_000

    # Event browsing
    default_page_size: int = 50
    default_range_days: int = 7

    # Supabase event store (in-memory store is used when unset)
    supabase_url: str = ""
    supabase_key: str = ""
    events_table: str = "seed_mill_events_historical"

    model_config = {"env_prefix": "DOWNTIME_"}


settings = Settings()
