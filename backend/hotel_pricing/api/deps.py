"""
Request dependencies. Cache, notifier and engine are built once in the app lifespan
(app.state) so scheduler jobs and requests share the same fallback store.
"""
from fastapi import Request

from hotel_pricing.services.cache import PriceCache
from hotel_pricing.services.notify import Notifier
from hotel_pricing.services.pricing import PriceAdjustmentEngine


def get_price_cache(request: Request) -> PriceCache:
    return request.app.state.price_cache


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_pricing_engine(request: Request) -> PriceAdjustmentEngine:
    return request.app.state.pricing_engine
