#!/usr/bin/env python3
"""
Check the pricing cache: Redis round-trip, memory/keyspace stats, fallback size.
Run: cd backend && python scripts/check_cache.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from hotel_pricing.config import settings
from hotel_pricing.services.cache import PriceCache


def main():
    cache = PriceCache.from_settings(settings)
    try:
        if cache.health_check():
            print(f"OK  Redis at {settings.redis_host}:{settings.redis_port}")
        else:
            print(f"FAIL Redis at {settings.redis_host}:{settings.redis_port} (fallback cache in use)")
        for key, value in cache.stats().items():
            print(f"  {key}: {value}")
    finally:
        cache.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
