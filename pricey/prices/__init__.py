"""Price history tracking and trends."""

from pricey.prices.tracker import PriceTracker, compute_unit_price

__all__ = [
    "PriceTracker",
    "compute_unit_price",
]
