"""Pure pricing rules: demand multiplier curve, display rounding, bounds and change percentage."""
import math

from hotel_pricing.core.constants import (
    DEFAULT_DEMAND_MULTIPLIER,
    DEMAND_MULTIPLIER_TIERS,
    PRICE_ROUNDING_INCREMENT,
)


def select_demand_multiplier(occupancy_rate: float) -> float:
    """First matching tier wins: >=95 -> 1.5, >=85 -> 1.3, >=70 -> 1.15, <=30 -> 0.85, else 1.0."""
    for op, threshold, multiplier in DEMAND_MULTIPLIER_TIERS:
        if op == ">=" and occupancy_rate >= threshold:
            return multiplier
        if op == "<=" and occupancy_rate <= threshold:
            return multiplier
    return DEFAULT_DEMAND_MULTIPLIER


def round_to_increment(amount: float, increment: int = PRICE_ROUNDING_INCREMENT) -> int:
    """Round half up to the nearest increment (same as JS Math.round for positive prices)."""
    return int(math.floor(amount / increment + 0.5)) * increment


def clamp_price(price: float, min_price: float | None, max_price: float | None) -> float:
    """Apply each bound only when it is set (None = no floor / no ceiling)."""
    if min_price is not None and price < min_price:
        price = min_price
    if max_price is not None and price > max_price:
        price = max_price
    return price


def change_percentage(old_price: float, new_price: float) -> float:
    """Absolute change relative to old_price, in percent."""
    return abs(new_price - old_price) * 100 / old_price
