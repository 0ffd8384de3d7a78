"""
Single source of truth for database tables that exist after migrations.

Use these names when writing raw SQL. alembic/env.py asserts the registered models match.
"""
ALL_TABLE_NAMES = (
    "rooms",
    "bookings",
    "pricing_events",
    "price_approvals",
    "pricing_adjustment_logs",
    "price_cache",
)
