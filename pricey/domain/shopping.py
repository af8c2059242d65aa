"""Data models for shopping list optimization."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

ZERO = Decimal("0")


@dataclass(frozen=True)
class ShoppingListItem:
    """A requested product and amount.

    ``quantity`` is in ``unit`` (any unit spelling, converted to its base
    unit). Without a unit it is read in the base unit most of the product's
    recent prices use.
    """

    product_id: str
    quantity: Decimal = Decimal("1")
    unit: str | None = None


@dataclass(frozen=True)
class ItemQuote:
    """Cost of one shopping list item at one store."""

    product_id: str
    store_id: str
    quantity: Decimal
    unit_price: Decimal
    cost: Decimal
    observed_on: date
    unit: str = "pcs"

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "storeId": self.store_id,
            "quantity": str(self.quantity),
            "unit": self.unit,
            "unitPrice": str(self.unit_price),
            "cost": str(self.cost),
            "observedOn": self.observed_on.isoformat(),
        }


@dataclass
class StoreRecommendation:
    """Cost of buying the list at a single store."""

    store_id: str
    total_cost: Decimal
    items: list[ItemQuote] = field(default_factory=list)
    missing_items: list[str] = field(default_factory=list)
    savings_vs_average: Decimal = ZERO

    @property
    def missing_count(self) -> int:
        return len(self.missing_items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "storeId": self.store_id,
            "totalCost": str(self.total_cost),
            "items": [quote.to_dict() for quote in self.items],
            "missingItems": list(self.missing_items),
            "missingCount": self.missing_count,
            "savingsVsAverage": str(self.savings_vs_average),
        }


@dataclass
class StoreAllocation:
    """Items assigned to one store in a multi-store plan."""

    store_id: str
    items: list[ItemQuote] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return sum((quote.cost for quote in self.items), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "storeId": self.store_id,
            "items": [quote.to_dict() for quote in self.items],
            "subtotal": str(self.subtotal),
        }


@dataclass
class MultiStoreRecommendation:
    """Per-item cheapest-store allocation."""

    total_cost: Decimal = ZERO
    savings: Decimal = ZERO
    stores: list[StoreAllocation] = field(default_factory=list)
    unavailable_items: list[str] = field(default_factory=list)
    best_single_store_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.stores

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCost": str(self.total_cost),
            "savings": str(self.savings),
            "stores": [allocation.to_dict() for allocation in self.stores],
            "unavailableItems": list(self.unavailable_items),
            "bestSingleStoreId": self.best_single_store_id,
        }
