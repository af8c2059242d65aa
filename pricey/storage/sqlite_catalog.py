"""SQLite-backed product catalog."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Sequence

from pricey.domain.product import CatalogProduct, normalize_product_name
from pricey.errors import CatalogUnavailable
from pricey.runtime.logging import get_logger
from pricey.storage.catalog import new_product_id, rank_by_similarity
from pricey.storage.sqlite import SqliteDatabase

logger = get_logger(__name__)

_COLUMNS = "product_id, name, normalized_name, category, brand, embedding"


def _decode_embedding(product_id: str, raw: str | None) -> list[float] | None:
    """Stored JSON vector; unreadable values count as missing so backfill re-embeds them."""
    if not raw:
        return None
    try:
        vector = json.loads(raw)
        if not isinstance(vector, list) or not vector:
            raise ValueError("not a non-empty array")
        return [float(value) for value in vector]
    except (TypeError, ValueError) as e:
        logger.warning("Ignoring corrupt embedding for %s: %s", product_id, e)
        return None


def _row_to_product(row: sqlite3.Row) -> CatalogProduct:
    return CatalogProduct(
        product_id=row["product_id"],
        name=row["name"],
        category=row["category"],
        brand=row["brand"],
        embedding=_decode_embedding(row["product_id"], row["embedding"]),
        normalized_name=row["normalized_name"],
    )


class SqliteProductCatalog:
    """Catalog persisted in the ``products`` table.

    Similarity search loads the embedded products and ranks them in process.
    """

    def __init__(self, db: SqliteDatabase) -> None:
        self.db = db

    def all_products(self) -> list[CatalogProduct]:
        try:
            with self.db.connect() as conn:
                rows = conn.execute(f"SELECT {_COLUMNS} FROM products ORDER BY rowid").fetchall()
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"Failed to read catalog: {e}") from e
        return [_row_to_product(row) for row in rows]

    def get(self, product_id: str) -> CatalogProduct | None:
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM products WHERE product_id = ?",
                    (product_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"Failed to read product {product_id}: {e}") from e
        return _row_to_product(row) if row else None

    def nearest(self, vector: Sequence[float], k: int = 1) -> list[tuple[CatalogProduct, float]]:
        try:
            with self.db.connect() as conn:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM products WHERE embedding IS NOT NULL ORDER BY rowid"
                ).fetchall()
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"Failed to search catalog: {e}") from e
        return rank_by_similarity([_row_to_product(row) for row in rows], vector, k)

    def upsert(self, name: str, category: str, brand: str | None = None) -> CatalogProduct:
        """Insert a product unless one with the same normalized name exists; return the stored row."""
        normalized = normalize_product_name(name)
        try:
            with self.db.connect() as conn:
                # No-op update so RETURNING yields the existing row on conflict
                row = conn.execute(
                    f"""
                    INSERT INTO products (product_id, name, normalized_name, category, brand)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(normalized_name) DO UPDATE SET normalized_name = excluded.normalized_name
                    RETURNING {_COLUMNS}
                    """,
                    (new_product_id(), name, normalized, category, brand),
                ).fetchall()[0]
                conn.commit()
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"Failed to upsert product {name!r}: {e}") from e
        return _row_to_product(row)

    def set_embedding(self, product_id: str, vector: Sequence[float]) -> None:
        try:
            with self.db.connect() as conn:
                conn.execute(
                    "UPDATE products SET embedding = ? WHERE product_id = ?",
                    (json.dumps([float(v) for v in vector]), product_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"Failed to store embedding for {product_id}: {e}") from e
