"""
Real-time pricing cache (Redis + bounded in-process fallback).
Keys: {prefix}:{kind}:{room_id}:{date}; kinds price, occupancy, competitor, metrics.
"""
from hotel_pricing.services.cache.fallback import FallbackStore
from hotel_pricing.services.cache.price_cache import CacheEntry, CacheKind, PriceCache

__all__ = ["CacheEntry", "CacheKind", "FallbackStore", "PriceCache"]
