"""
Dynamic pricing: occupancy -> demand multiplier -> bounded price -> auto-apply or approval.

- processor: claims pricing_events one at a time and records outcomes / retries.
- engine: one event -> NO_CHANGE | APPROVAL_CREATED | PRICE_UPDATED.
- approvals: approve / reject / expire pending price approvals.
- quotes: read-through real-time price quotes (no room changes).
"""
from hotel_pricing.services.pricing.engine import AdjustmentOutcome, PriceAdjustmentEngine
from hotel_pricing.services.pricing.events import EventType, enqueue_event
from hotel_pricing.services.pricing.processor import ProcessingResult, claim_batch, claim_event, process_pending_events
from hotel_pricing.services.pricing.quotes import quote_price, quote_prices

__all__ = [
    "AdjustmentOutcome",
    "EventType",
    "PriceAdjustmentEngine",
    "ProcessingResult",
    "claim_batch",
    "claim_event",
    "enqueue_event",
    "process_pending_events",
    "quote_price",
    "quote_prices",
]
