from hotel_pricing.models.booking import Booking
from hotel_pricing.models.price_approval import PriceApproval
from hotel_pricing.models.price_cache_entry import PriceCacheEntry
from hotel_pricing.models.pricing_adjustment_log import PricingAdjustmentLog
from hotel_pricing.models.pricing_event import PricingEvent
from hotel_pricing.models.room import Room

__all__ = [
    "Booking",
    "PriceApproval",
    "PriceCacheEntry",
    "PricingAdjustmentLog",
    "PricingEvent",
    "Room",
]
