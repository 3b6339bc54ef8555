"""downtime-patterns — rapid recurrence and downtime transition analytics.

This is the application entry point.  It wires the EventSource, the
analytics service, the analyzers and the HTTP routers together.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from downtime_patterns.api.errors import install_error_handlers
from downtime_patterns.api.events import create_events_router
from downtime_patterns.api.recurrence import create_recurrence_router
from downtime_patterns.api.transitions import create_transitions_router
from downtime_patterns.config import Settings, settings
from downtime_patterns.core.recurrence_detector import RapidRecurrenceDetector
from downtime_patterns.core.transition_analyzer import TransitionAnalyzer
from downtime_patterns.services.analytics import DowntimeAnalyticsService
from downtime_patterns.store.event_source import EventSource
from downtime_patterns.store.memory import InMemoryEventSource
from downtime_patterns.store.supabase_source import SupabaseEventSource

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


# ── Event Source ─────────────────────────────────────────────────────────────

def build_event_source(config: Settings) -> EventSource:
    """Supabase when credentials are configured, otherwise an empty store."""
    if config.supabase_url and config.supabase_key:
        logger.info("Using Supabase table %s", config.events_table)
        return SupabaseEventSource.from_credentials(
            config.supabase_url, config.supabase_key, config.events_table,
        )
    logger.warning("DOWNTIME_SUPABASE_URL/KEY not set; serving an empty in-memory event store")
    return InMemoryEventSource()


# ── App ──────────────────────────────────────────────────────────────────────

def create_app(source: EventSource, config: Settings = settings) -> FastAPI:
    """Build the FastAPI app around *source*."""
    service = DowntimeAnalyticsService(
        source,
        detector=RapidRecurrenceDetector(top_limit=config.top_reason_limit),
        analyzer=TransitionAnalyzer(),
        max_events=config.max_events,
        chunk_size=config.fetch_chunk_size,
        default_range_days=config.default_range_days,
    )

    app = FastAPI(
        title=config.app_name,
        description="Rapid recurrence and downtime transition analytics",
        version="0.1.0",
        debug=config.debug,
    )
    install_error_handlers(app)

    # ── Routes ───────────────────────────────────────────────────────────
    app.include_router(create_recurrence_router(
        service, default_threshold_minutes=config.default_threshold_minutes,
    ))
    app.include_router(create_transitions_router(service, default_top_n=config.default_top_n))
    app.include_router(create_events_router(service, default_page_size=config.default_page_size))

    # ── Health ───────────────────────────────────────────────────────────
    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "event_source": service.source_name,
            "max_events": service.max_events,
        }

    return app


app = create_app(build_event_source(settings))
