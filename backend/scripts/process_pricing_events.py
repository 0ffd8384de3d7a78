#!/usr/bin/env python3
"""
Run one pricing processor batch outside the scheduler (same work as POST /pricing/process).
Run: cd backend && python scripts/process_pricing_events.py [--limit 20]
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from hotel_pricing.config import settings
from hotel_pricing.core.constants import PROCESSOR_BATCH_SIZE
from hotel_pricing.db.session import SessionLocal
from hotel_pricing.services.cache import PriceCache
from hotel_pricing.services.notify import WhatsAppNotifier
from hotel_pricing.services.pricing import PriceAdjustmentEngine, process_pending_events


def main():
    parser = argparse.ArgumentParser(description="Process pending pricing events once.")
    parser.add_argument("--limit", type=int, default=PROCESSOR_BATCH_SIZE)
    args = parser.parse_args()

    cache = PriceCache.from_settings(settings)
    engine = PriceAdjustmentEngine.from_settings(settings, cache, WhatsAppNotifier.from_settings(settings))
    db = SessionLocal()
    try:
        result = process_pending_events(db, engine, limit=args.limit)
        print(result.message())
        print(
            f"events_processed={result.events_processed}, prices_updated={result.prices_updated}, "
            f"approvals_created={result.approvals_created}, errors={result.errors}, "
            f"processing_time_ms={result.processing_time_ms}"
        )
    finally:
        db.close()
        cache.close()


if __name__ == "__main__":
    main()
