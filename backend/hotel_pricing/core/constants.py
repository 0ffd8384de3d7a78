"""
Centralized constants for the pricing processor and scheduler.

Change job IDs, batch sizes and pricing thresholds here instead of scattering literals
across the engine, the processor and main.
"""

# Scheduler job IDs (must match ids used in main.py add_job)
PRICING_PROCESSOR_JOB_ID = "pricing_processor"
FALLBACK_CACHE_CLEANUP_JOB_ID = "fallback_cache_cleanup"

# Queue: max events claimed per run; events at MAX_EVENT_RETRIES are never selected again
PROCESSOR_BATCH_SIZE = 20
MAX_EVENT_RETRIES = 3

# Price changes above this percentage need a human approval
APPROVAL_THRESHOLD_PERCENT = 10.0
APPROVAL_EXPIRY_MINUTES = 30

# price_cache rows (persisted secondary cache) are valid this long
PRICE_CACHE_VALID_MINUTES = 15

# Prices are shown rounded to this increment (IDR)
PRICE_ROUNDING_INCREMENT = 10000

# Occupancy tiers: (operator, threshold, multiplier). First match wins.
DEMAND_MULTIPLIER_TIERS: list[tuple[str, float, float]] = [
    (">=", 95.0, 1.50),
    (">=", 85.0, 1.30),
    (">=", 70.0, 1.15),
    ("<=", 30.0, 0.85),
]
DEFAULT_DEMAND_MULTIPLIER = 1.0

# Demand score: occupancy plus up to this many points for bookings made in the last window
DEMAND_SCORE_RECENT_BONUS = 10.0
DEMAND_SCORE_RECENT_HOURS = 24

# Booking statuses that do not hold inventory
INACTIVE_BOOKING_STATUSES = ("cancelled", "rejected")
