from hotel_pricing.services.cache import PriceCache
from hotel_pricing.services.notify import WhatsAppNotifier
from hotel_pricing.services.pricing import PriceAdjustmentEngine, process_pending_events

__all__ = ["PriceCache", "WhatsAppNotifier", "PriceAdjustmentEngine", "process_pending_events"]
