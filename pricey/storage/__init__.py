"""Catalog and price history stores."""

from pricey.storage.catalog import InMemoryProductCatalog, ProductCatalog
from pricey.storage.price_history import InMemoryPriceHistory, PriceHistoryStore, SqlitePriceHistory
from pricey.storage.sqlite import SqliteDatabase
from pricey.storage.sqlite_catalog import SqliteProductCatalog

__all__ = [
    "InMemoryPriceHistory",
    "InMemoryProductCatalog",
    "PriceHistoryStore",
    "ProductCatalog",
    "SqliteDatabase",
    "SqlitePriceHistory",
    "SqliteProductCatalog",
]
