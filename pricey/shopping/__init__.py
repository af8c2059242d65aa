"""Shopping list optimization."""

from pricey.shopping.optimizer import ShoppingOptimizer

__all__ = [
    "ShoppingOptimizer",
]
