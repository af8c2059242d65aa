"""Data models for price history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

TREND_UP = "up"
TREND_DOWN = "down"
TREND_STABLE = "stable"


@dataclass(frozen=True)
class PriceObservation:
    """One observed price of a product at a store on a date."""

    product_id: str
    store_id: str
    price: Decimal
    unit_price: Decimal  # price per base unit (kg, l or pcs)
    unit: str
    date: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "storeId": self.store_id,
            "price": str(self.price),
            "unitPrice": str(self.unit_price),
            "unit": self.unit,
            "date": self.date.isoformat(),
        }


@dataclass(frozen=True)
class LastKnownPrice:
    product_id: str
    price: Decimal
    date: date

    def to_dict(self) -> dict[str, Any]:
        return {"productId": self.product_id, "price": str(self.price), "date": self.date.isoformat()}


@dataclass(frozen=True)
class PriceTrend:
    """Direction and naive prediction for a product's recent prices."""

    product_id: str
    direction: str
    change_percent: float | None
    predicted_price: Decimal | None
    confidence: float
    observation_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "direction": self.direction,
            "changePercent": self.change_percent,
            "predictedPrice": str(self.predicted_price) if self.predicted_price is not None else None,
            "confidence": self.confidence,
            "observationCount": self.observation_count,
        }
