"""
Process the pricing event queue every PRICING_PROCESSOR_INTERVAL_SECONDS (default 5 minutes),
and purge expired fallback cache entries.

Each tick is one run to completion in its own session. Heartbeat is in-memory (GET /health).
"""
import logging
from datetime import datetime, timezone
from typing import Any

from hotel_pricing.db.session import SessionLocal
from hotel_pricing.services.cache import PriceCache
from hotel_pricing.services.pricing import PriceAdjustmentEngine, process_pending_events

logger = logging.getLogger(__name__)

_last_started_at: datetime | None = None
_last_finished_at: datetime | None = None
_last_result: dict[str, Any] | None = None
_last_error: str | None = None


def get_processor_heartbeat() -> dict[str, Any]:
    """Last run times, summary and error. In-memory only."""
    return {
        "last_started_at": _last_started_at.isoformat() if _last_started_at else None,
        "last_finished_at": _last_finished_at.isoformat() if _last_finished_at else None,
        "last_result": _last_result,
        "last_error": _last_error,
    }


def run_pricing_processor_job(engine: PriceAdjustmentEngine) -> None:
    global _last_started_at, _last_finished_at, _last_result, _last_error
    _last_started_at = datetime.now(timezone.utc)
    db = SessionLocal()
    try:
        result = process_pending_events(db, engine)
        _last_result = result.to_dict()
        _last_error = None
        if result.events_processed or result.errors:
            logger.info("Pricing job: %s", result.message())
    except Exception as e:
        _last_error = str(e)
        logger.exception("Pricing job failed: %s", e)
        db.rollback()
    finally:
        db.close()
        _last_finished_at = datetime.now(timezone.utc)


def run_fallback_cache_cleanup_job(cache: PriceCache) -> None:
    try:
        removed = cache.cleanup_expired()
        if removed:
            logger.info("Fallback cache cleanup: removed %s expired entries", removed)
    except Exception as e:
        logger.warning("Fallback cache cleanup failed: %s", e, exc_info=True)
