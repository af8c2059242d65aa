"""Shopping list cost optimization over recent price history.

Prices are compared per base unit (kg, l or pcs), matching the unit prices
stored by the price tracker. A list item is priced only against observations
in its own base unit; prices in another unit count as missing for that store.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from pricey.domain.prices import PriceObservation
from pricey.domain.shopping import (
    ZERO,
    ItemQuote,
    MultiStoreRecommendation,
    ShoppingListItem,
    StoreAllocation,
    StoreRecommendation,
)
from pricey.errors import PriceHistoryUnavailable
from pricey.runtime.logging import get_logger
from pricey.storage.price_history import PriceHistoryStore
from pricey.util.units import to_base_quantity

logger = get_logger(__name__)

DEFAULT_WINDOW_DAYS = 30
MONEY_QUANTUM = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def _mean(values: Sequence[Decimal]) -> Decimal:
    return sum(values, ZERO) / len(values)


@dataclass(frozen=True)
class _StorePrice:
    """Current and average unit price of one product at one store."""

    current: Decimal
    average: Decimal
    observed_on: date


def _base_unit(unit: str) -> str:
    return to_base_quantity(Decimal("1"), unit)[1]


class _PriceBook:
    """Recent prices for the requested products, keyed by product, base unit, then store.

    Unit prices are only compared within one base unit; a per-piece price
    never competes with a per-kg price.
    """

    def __init__(self, observations: dict[str, list[PriceObservation]]) -> None:
        self.prices: dict[str, dict[str, dict[str, _StorePrice]]] = {}
        self._dominant_units: dict[str, str] = {}
        for product_id, product_obs in observations.items():
            grouped: dict[str, dict[str, list[PriceObservation]]] = defaultdict(lambda: defaultdict(list))
            for obs in product_obs:
                grouped[_base_unit(obs.unit)][obs.store_id].append(obs)
            self.prices[product_id] = {
                unit: {
                    store_id: _StorePrice(
                        # Chronological order: the last observation is the current price
                        current=store_obs[-1].unit_price,
                        average=_mean([obs.unit_price for obs in store_obs]),
                        observed_on=store_obs[-1].date,
                    )
                    for store_id, store_obs in by_store.items()
                }
                for unit, by_store in grouped.items()
            }
            if grouped:
                # Most observations wins; ties go to the unit seen most recently
                self._dominant_units[product_id] = max(
                    grouped,
                    key=lambda unit: (
                        sum(len(store_obs) for store_obs in grouped[unit].values()),
                        max(obs.date for store_obs in grouped[unit].values() for obs in store_obs),
                    ),
                )

    def stores(self) -> list[str]:
        return sorted(
            {
                store_id
                for by_unit in self.prices.values()
                for by_store in by_unit.values()
                for store_id in by_store
            }
        )

    def resolve(self, item: ShoppingListItem) -> tuple[Decimal, str] | None:
        """(quantity in base unit, base unit) for an item, or None without any prices."""
        if item.unit:
            return to_base_quantity(item.quantity, item.unit)
        unit = self._dominant_units.get(item.product_id)
        if unit is None:
            return None
        return item.quantity, unit

    def quote(self, item: ShoppingListItem, store_id: str) -> ItemQuote | None:
        resolved = self.resolve(item)
        if resolved is None:
            return None
        quantity, unit = resolved
        store_price = self.prices.get(item.product_id, {}).get(unit, {}).get(store_id)
        if store_price is None:
            return None
        return ItemQuote(
            product_id=item.product_id,
            store_id=store_id,
            quantity=quantity,
            unit_price=store_price.current,
            cost=store_price.current * quantity,
            observed_on=store_price.observed_on,
            unit=unit,
        )

    def market_average(self, product_id: str, unit: str) -> Decimal | None:
        """Unweighted mean over stores of each store's average unit price."""
        by_store = self.prices.get(product_id, {}).get(unit)
        if not by_store:
            return None
        return _mean([store_price.average for store_price in by_store.values()])


class ShoppingOptimizer:
    """Rank stores for a shopping list and build a per-item cheapest-store plan."""

    def __init__(self, history: PriceHistoryStore, window_days: int = DEFAULT_WINDOW_DAYS) -> None:
        self.history = history
        self.window_days = window_days

    def _load(self, items: Sequence[ShoppingListItem], today: date | None) -> _PriceBook:
        since = (today or date.today()) - timedelta(days=self.window_days)
        observations = {
            product_id: self.history.query(product_id, since=since)
            for product_id in dict.fromkeys(item.product_id for item in items)
        }
        return _PriceBook(observations)

    def _rank(self, items: Sequence[ShoppingListItem], book: _PriceBook) -> list[StoreRecommendation]:
        recommendations = []
        for store_id in book.stores():
            quotes: list[ItemQuote] = []
            missing: list[str] = []
            average_cost = ZERO
            for item in items:
                quote = book.quote(item, store_id)
                if quote is None:
                    missing.append(item.product_id)
                    continue
                quotes.append(quote)
                average = book.market_average(item.product_id, quote.unit) or ZERO
                average_cost += average * quote.quantity
            if not quotes:
                # Only prices in a unit the list does not ask for
                logger.debug("Store %s has no comparable prices for the list", store_id)
                continue
            total = sum((quote.cost for quote in quotes), ZERO)
            recommendations.append(
                StoreRecommendation(
                    store_id=store_id,
                    total_cost=_money(total),
                    items=quotes,
                    missing_items=missing,
                    savings_vs_average=_money(average_cost - total),
                )
            )
        recommendations.sort(key=lambda rec: (rec.total_cost, rec.missing_count, rec.store_id))
        return recommendations

    def single_store(
        self,
        items: Sequence[ShoppingListItem],
        today: date | None = None,
    ) -> list[StoreRecommendation]:
        """
        Rank every store with recent prices for at least one requested item.

        Stores are ordered by the cost of what they can fulfil; missing items
        are reported, not priced in.

        Returns:
            Recommendations, cheapest first; [] if the price history is unavailable
        """
        if not items:
            return []
        try:
            book = self._load(items, today)
        except PriceHistoryUnavailable as e:
            logger.warning("Price history unavailable for single-store ranking: %s", e)
            return []
        return self._rank(items, book)

    def multi_store(
        self,
        items: Sequence[ShoppingListItem],
        today: date | None = None,
    ) -> MultiStoreRecommendation:
        """
        Assign each item to the store with its lowest current unit price.

        Greedy per item (ties go to the lower store id); trip count is not
        considered. ``savings`` compares the best single store's total with
        what the same items cost under this plan.

        Returns:
            The allocation; an empty recommendation if the price history is unavailable
        """
        if not items:
            return MultiStoreRecommendation()
        try:
            book = self._load(items, today)
        except PriceHistoryUnavailable as e:
            logger.warning("Price history unavailable for multi-store plan: %s", e)
            return MultiStoreRecommendation()

        stores = book.stores()
        chosen: list[ItemQuote | None] = []
        for item in items:
            quotes = [q for q in (book.quote(item, store_id) for store_id in stores) if q is not None]
            chosen.append(min(quotes, key=lambda q: (q.unit_price, q.store_id)) if quotes else None)

        unavailable = [item.product_id for item, quote in zip(items, chosen) if quote is None]
        grouped: dict[str, list[ItemQuote]] = defaultdict(list)
        for quote in chosen:
            if quote is not None:
                grouped[quote.store_id].append(quote)
        if not grouped:
            return MultiStoreRecommendation(unavailable_items=unavailable)

        total = sum((quote.cost for quote in chosen if quote is not None), ZERO)
        ranking = self._rank(items, book)
        best = ranking[0]
        best_fulfilled = {quote.product_id for quote in best.items}
        comparable_cost = sum(
            (quote.cost for quote in chosen if quote is not None and quote.product_id in best_fulfilled),
            ZERO,
        )
        best_total = sum((quote.cost for quote in best.items), ZERO)

        return MultiStoreRecommendation(
            total_cost=_money(total),
            savings=_money(best_total - comparable_cost),
            stores=[StoreAllocation(store_id=store_id, items=grouped[store_id]) for store_id in sorted(grouped)],
            unavailable_items=unavailable,
            best_single_store_id=best.store_id,
        )
