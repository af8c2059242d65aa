"""Price history stores: append-only observations plus a last-known price per product."""

from __future__ import annotations

import sqlite3
import threading
from datetime import date
from decimal import Decimal
from typing import Protocol

from pricey.domain.prices import LastKnownPrice, PriceObservation
from pricey.errors import PriceHistoryUnavailable
from pricey.storage.sqlite import SqliteDatabase


class PriceHistoryStore(Protocol):
    """Implementations raise ``PriceHistoryUnavailable`` when the backing store fails."""

    def insert(self, observation: PriceObservation) -> None: ...

    def query(
        self,
        product_id: str | None = None,
        store_id: str | None = None,
        since: date | None = None,
    ) -> list[PriceObservation]: ...

    def update_last_price(self, product_id: str, price: Decimal, observed_on: date) -> None: ...

    def last_price(self, product_id: str) -> LastKnownPrice | None: ...


class InMemoryPriceHistory:
    """Thread-safe in-process price history."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._observations: list[PriceObservation] = []
        self._last: dict[str, LastKnownPrice] = {}

    def insert(self, observation: PriceObservation) -> None:
        with self._lock:
            self._observations.append(observation)

    def query(
        self,
        product_id: str | None = None,
        store_id: str | None = None,
        since: date | None = None,
    ) -> list[PriceObservation]:
        """Matching observations in chronological order (insertion order within a day)."""
        with self._lock:
            matched = [
                obs
                for obs in self._observations
                if (product_id is None or obs.product_id == product_id)
                and (store_id is None or obs.store_id == store_id)
                and (since is None or obs.date >= since)
            ]
        matched.sort(key=lambda obs: obs.date)
        return matched

    def update_last_price(self, product_id: str, price: Decimal, observed_on: date) -> None:
        """Replace the cached price unless the cached one is more recent."""
        with self._lock:
            current = self._last.get(product_id)
            if current is not None and observed_on < current.date:
                return
            self._last[product_id] = LastKnownPrice(product_id=product_id, price=price, date=observed_on)

    def last_price(self, product_id: str) -> LastKnownPrice | None:
        with self._lock:
            return self._last.get(product_id)


def _row_to_observation(row: sqlite3.Row) -> PriceObservation:
    return PriceObservation(
        product_id=row["product_id"],
        store_id=row["store_id"],
        price=Decimal(row["price"]),
        unit_price=Decimal(row["unit_price"]),
        unit=row["unit"],
        date=date.fromisoformat(row["observed_on"]),
    )


class SqlitePriceHistory:
    """Price history persisted in ``price_observations`` and ``last_prices``."""

    def __init__(self, db: SqliteDatabase) -> None:
        self.db = db

    def insert(self, observation: PriceObservation) -> None:
        try:
            with self.db.connect() as conn:
                conn.execute(
                    """
                    INSERT INTO price_observations (product_id, store_id, price, unit_price, unit, observed_on)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        observation.product_id,
                        observation.store_id,
                        str(observation.price),
                        str(observation.unit_price),
                        observation.unit,
                        observation.date.isoformat(),
                    ),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise PriceHistoryUnavailable(f"Failed to insert price observation: {e}") from e

    def query(
        self,
        product_id: str | None = None,
        store_id: str | None = None,
        since: date | None = None,
    ) -> list[PriceObservation]:
        clauses: list[str] = []
        params: list[str] = []
        if product_id is not None:
            clauses.append("product_id = ?")
            params.append(product_id)
        if store_id is not None:
            clauses.append("store_id = ?")
            params.append(store_id)
        if since is not None:
            clauses.append("observed_on >= ?")
            params.append(since.isoformat())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            with self.db.connect() as conn:
                rows = conn.execute(
                    "SELECT product_id, store_id, price, unit_price, unit, observed_on "
                    f"FROM price_observations {where} ORDER BY observed_on, observation_id",
                    params,
                ).fetchall()
        except sqlite3.Error as e:
            raise PriceHistoryUnavailable(f"Failed to query price history: {e}") from e
        return [_row_to_observation(row) for row in rows]

    def update_last_price(self, product_id: str, price: Decimal, observed_on: date) -> None:
        """Replace the cached price unless the cached one is more recent."""
        try:
            with self.db.connect() as conn:
                conn.execute(
                    """
                    INSERT INTO last_prices (product_id, price, observed_on)
                    VALUES (?, ?, ?)
                    ON CONFLICT(product_id) DO UPDATE
                      SET price = excluded.price, observed_on = excluded.observed_on
                      WHERE excluded.observed_on >= last_prices.observed_on
                    """,
                    (product_id, str(price), observed_on.isoformat()),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise PriceHistoryUnavailable(f"Failed to update last price for {product_id}: {e}") from e

    def last_price(self, product_id: str) -> LastKnownPrice | None:
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    "SELECT price, observed_on FROM last_prices WHERE product_id = ?",
                    (product_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise PriceHistoryUnavailable(f"Failed to read last price for {product_id}: {e}") from e
        if row is None:
            return None
        return LastKnownPrice(
            product_id=product_id,
            price=Decimal(row["price"]),
            date=date.fromisoformat(row["observed_on"]),
        )
