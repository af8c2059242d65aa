"""Record observed prices and derive simple trends."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

import numpy as np

from pricey.domain.prices import (
    TREND_DOWN,
    TREND_STABLE,
    TREND_UP,
    LastKnownPrice,
    PriceObservation,
    PriceTrend,
)
from pricey.runtime.logging import get_logger
from pricey.storage.price_history import PriceHistoryStore
from pricey.util.units import to_base_quantity

logger = get_logger(__name__)

UNIT_PRICE_QUANTUM = Decimal("0.0001")
PRICE_QUANTUM = Decimal("0.01")
DEFAULT_TREND_WINDOW_DAYS = 30
# Percent change from first to last observation that counts as a move
TREND_CHANGE_THRESHOLD = 5.0


def compute_unit_price(price: Decimal, quantity: Decimal, unit: str) -> tuple[Decimal, str]:
    """Price per base unit (kg, l or pcs), rounded to 4 decimal places.

    Returns:
        (unit price, base unit)
    """
    base_quantity, base_unit = to_base_quantity(quantity, unit)
    if base_quantity <= 0:
        return price.quantize(UNIT_PRICE_QUANTUM, rounding=ROUND_HALF_UP), base_unit
    return (price / base_quantity).quantize(UNIT_PRICE_QUANTUM, rounding=ROUND_HALF_UP), base_unit


class PriceTracker:
    """Append price observations and keep a per-product last-known price."""

    def __init__(self, history: PriceHistoryStore) -> None:
        self.history = history

    def record(
        self,
        product_id: str,
        store_id: str,
        price: Decimal,
        unit: str,
        observed_on: date,
        quantity: Decimal = Decimal("1"),
    ) -> PriceObservation:
        """
        Append one observation.

        ``price`` is what was paid for ``quantity`` of ``unit``; the stored
        unit price is normalized to the base unit. The last-known price only
        moves forward in time.

        Raises:
            PriceHistoryUnavailable: if the history store cannot be written
        """
        unit_price, base_unit = compute_unit_price(price, quantity, unit)
        observation = PriceObservation(
            product_id=product_id,
            store_id=store_id,
            price=price,
            unit_price=unit_price,
            unit=base_unit,
            date=observed_on,
        )
        self.history.insert(observation)
        self.history.update_last_price(product_id, price, observed_on)
        logger.debug("Recorded %s at %s: %s (%s/%s)", product_id, store_id, price, unit_price, base_unit)
        return observation

    def last_known_price(self, product_id: str) -> LastKnownPrice | None:
        return self.history.last_price(product_id)

    def trend(
        self,
        product_id: str,
        window_days: int = DEFAULT_TREND_WINDOW_DAYS,
        store_id: str | None = None,
        today: date | None = None,
    ) -> PriceTrend:
        """
        Direction and next-price prediction over the observation window.

        A line is fitted to (sequence index, price); the prediction is its
        value at the next index. Direction comes from the percent change
        between the first and last observation. Confidence is one minus the
        coefficient of variation of the prices, clamped to [0, 1].
        """
        since = (today or date.today()) - timedelta(days=window_days)
        observations = self.history.query(product_id, store_id=store_id, since=since)
        count = len(observations)

        if count < 2:
            return PriceTrend(
                product_id=product_id,
                direction=TREND_STABLE,
                change_percent=None,
                predicted_price=observations[0].price if observations else None,
                confidence=0.0,
                observation_count=count,
            )

        prices = np.array([float(obs.price) for obs in observations])
        indices = np.arange(count, dtype=float)
        slope, intercept = np.polyfit(indices, prices, 1)
        predicted = max(float(slope * count + intercept), 0.0)

        first, last = prices[0], prices[-1]
        change_percent = float((last - first) / first * 100) if first != 0 else None
        if change_percent is not None and change_percent > TREND_CHANGE_THRESHOLD:
            direction = TREND_UP
        elif change_percent is not None and change_percent < -TREND_CHANGE_THRESHOLD:
            direction = TREND_DOWN
        else:
            direction = TREND_STABLE

        mean = float(prices.mean())
        if mean > 0:
            confidence = 1.0 - float(prices.std()) / mean
        else:
            confidence = 0.0
        confidence = min(max(confidence, 0.0), 1.0)

        return PriceTrend(
            product_id=product_id,
            direction=direction,
            change_percent=change_percent,
            predicted_price=Decimal(str(predicted)).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP),
            confidence=confidence,
            observation_count=count,
        )
