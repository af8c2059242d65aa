"""SQLite database shared by the catalog and price history stores."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pricey.runtime.logging import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- 1) Canonical products
CREATE TABLE IF NOT EXISTS products (
  product_id       TEXT PRIMARY KEY,
  name             TEXT NOT NULL,
  normalized_name  TEXT NOT NULL UNIQUE,
  category         TEXT NOT NULL,
  brand            TEXT,
  embedding        TEXT,             -- JSON array of floats
  created_at       TEXT DEFAULT (datetime('now'))
);

-- 2) Append-only price observations; decimals stored as text
CREATE TABLE IF NOT EXISTS price_observations (
  observation_id   INTEGER PRIMARY KEY,
  product_id       TEXT NOT NULL,
  store_id         TEXT NOT NULL,
  price            TEXT NOT NULL,
  unit_price       TEXT NOT NULL,
  unit             TEXT NOT NULL,
  observed_on      TEXT NOT NULL     -- "YYYY-MM-DD"
);

-- 3) Last known price per product
CREATE TABLE IF NOT EXISTS last_prices (
  product_id       TEXT PRIMARY KEY,
  price            TEXT NOT NULL,
  observed_on      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_observations_product_date ON price_observations(product_id, observed_on);
CREATE INDEX IF NOT EXISTS idx_observations_store        ON price_observations(store_id);
"""


class SqliteDatabase:
    """SQLite file holding catalog and price history tables.

    - Creates the parent directory and the schema on first use.
    - Provides a context-managed connection method.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Pricey DB path: %s", self.db_path)
        self._ensure_schema()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.executescript(SCHEMA_SQL)
            conn.commit()
