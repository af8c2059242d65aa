"""Tests for the parse -> normalize -> record pipeline."""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest
from pricey.errors import CatalogUnavailable, PriceHistoryUnavailable
from pricey.normalize.normalizer import ProductNormalizer
from pricey.prices.tracker import PriceTracker
from pricey.receipt import ReceiptParser
from pricey.runtime.receipt_pipeline import ReceiptPipeline, slugify_store_id
from pricey.runtime.settings import Settings
from pricey.storage.price_history import SqlitePriceHistory
from pricey.storage.sqlite import SqliteDatabase

REFERENCE = date(2024, 2, 1)

WALMART_RECEIPT = (
    "WALMART\n123 Main St\nDate: 01/15/2024\n\nApple Red 1kg     €2.50\nBread             €1.99\n\nTotal:            €4.49"
)


class ReadOnlyCatalog:
    def all_products(self):
        return []

    def get(self, product_id):
        return None

    def nearest(self, vector, k=1):
        return []

    def upsert(self, name, category, brand=None):
        raise CatalogUnavailable("catalog is read-only")

    def set_embedding(self, product_id, vector):
        raise CatalogUnavailable("catalog is read-only")


class FailingHistory:
    def insert(self, observation):
        raise PriceHistoryUnavailable("disk full")

    def update_last_price(self, product_id, price, observed_on):
        raise PriceHistoryUnavailable("disk full")


@pytest.fixture
def pipeline(normalizer, history) -> ReceiptPipeline:
    return ReceiptPipeline(ReceiptParser(reference_date=REFERENCE), normalizer, PriceTracker(history))


def test_receipt_is_normalized_and_recorded(pipeline, add_product, history) -> None:
    apple = add_product("Apple", category="fruit")
    bread = add_product("Bread", category="bakery")

    result = pipeline.process(WALMART_RECEIPT)

    assert result.store_id == "walmart"
    assert result.purchase_date == date(2024, 1, 15)
    assert [entry.normalization.generic_product_id for entry in result.items] == [apple.product_id, bread.product_id]
    assert result.recorded_count == 2
    observations = history.query(store_id="walmart")
    assert [(obs.product_id, obs.price, obs.unit) for obs in observations] == [
        (apple.product_id, Decimal("2.50"), "kg"),
        (bread.product_id, Decimal("1.99"), "pcs"),
    ]
    assert pipeline.tracker.last_known_price(apple.product_id).date == date(2024, 1, 15)


def test_result_to_dict_is_json_serializable(pipeline, add_product) -> None:
    add_product("Apple", category="fruit")

    payload = json.loads(json.dumps(pipeline.process(WALMART_RECEIPT).to_dict()))

    assert payload["storeId"] == "walmart"
    assert payload["purchaseDate"] == "2024-01-15"
    assert payload["items"][0]["normalization"]["genericProductName"] == "Apple"
    assert payload["items"][0]["observation"]["unitPrice"] == "2.5000"


def test_missing_date_uses_received_on(pipeline) -> None:
    result = pipeline.process("Corner Shop\nApple 1.00", received_on=date(2024, 1, 20))

    assert result.store_id == "corner-shop"
    assert result.purchase_date == date(2024, 1, 20)
    assert result.items[0].observation.date == date(2024, 1, 20)


def test_missing_store_skips_price_recording(pipeline, history) -> None:
    result = pipeline.process("***\nApple 1.00", received_on=date(2024, 1, 20))

    assert result.store_id is None
    assert result.normalized_count == 1
    assert result.recorded_count == 0
    assert history.query() == []


def test_non_positive_prices_are_not_recorded(pipeline, history) -> None:
    result = pipeline.process("Corner Shop\nApple 1.00\nRabatt -0,50\nSticker 0.00", received_on=REFERENCE)

    assert result.normalized_count == 3
    assert result.recorded_count == 1
    assert [obs.price for obs in history.query()] == [Decimal("1.00")]


def test_empty_receipt(pipeline) -> None:
    result = pipeline.process("", received_on=REFERENCE)

    assert result.receipt.items == []
    assert result.items == []
    assert result.store_id is None


def test_catalog_failure_is_reported_per_item(embedder, history) -> None:
    pipeline = ReceiptPipeline(
        ReceiptParser(reference_date=REFERENCE),
        ProductNormalizer(ReadOnlyCatalog(), embedder),
        PriceTracker(history),
    )

    result = pipeline.process(WALMART_RECEIPT)

    assert len(result.items) == 2
    assert all(entry.normalization is None for entry in result.items)
    assert all(entry.error == "catalog is read-only" for entry in result.items)
    assert history.query() == []


def test_price_history_failure_is_reported_per_item(normalizer) -> None:
    pipeline = ReceiptPipeline(ReceiptParser(reference_date=REFERENCE), normalizer, PriceTracker(FailingHistory()))

    result = pipeline.process(WALMART_RECEIPT)

    assert result.normalized_count == 2
    assert result.recorded_count == 0
    assert [entry.error for entry in result.items] == ["disk full", "disk full"]


@pytest.mark.parametrize(
    ("name", "store_id"),
    [
        ("Walmart", "walmart"),
        ("Trader Joe's", "trader-joes"),
        ("Café Zentral", "cafe-zentral"),
        ("BILLA  Filiale #12", "billa-filiale-12"),
        ("***", "unknown-store"),
    ],
)
def test_slugify_store_id(name: str, store_id: str) -> None:
    assert slugify_store_id(name) == store_id


def test_from_settings_uses_sqlite_storage(tmp_path) -> None:
    db_path = tmp_path / "data" / "pricey.sqlite3"
    settings = Settings(embedding_url="http://127.0.0.1:9", embedding_timeout=0.5, db_path=db_path)

    pipeline = ReceiptPipeline.from_settings(settings)
    result = pipeline.process("BILLA\nMilch 1 l 1,39", received_on=REFERENCE)

    # Embedding service is unreachable, so the item becomes a new product
    assert result.items[0].normalization.strategy == "new_product"
    stored = SqlitePriceHistory(SqliteDatabase(db_path)).query(store_id="billa")
    assert [(obs.price, obs.unit, obs.date) for obs in stored] == [(Decimal("1.39"), "l", REFERENCE)]


def test_from_settings_requires_database_path() -> None:
    with pytest.raises(ValueError):
        ReceiptPipeline.from_settings(Settings(db_path=None))


def test_guessed_store_below_minimum_confidence_is_not_recorded(normalizer, history) -> None:
    pipeline = ReceiptPipeline(
        ReceiptParser(reference_date=REFERENCE),
        normalizer,
        PriceTracker(history),
        min_store_confidence=0.9,
    )

    result = pipeline.process("Corner Shop\nApple 1.00", received_on=REFERENCE)

    assert result.store_id == "corner-shop"
    assert result.receipt.store.confidence == 0.5
    assert result.normalized_count == 1
    assert result.recorded_count == 0
    assert history.query() == []


def test_known_store_meets_minimum_confidence(normalizer, history, add_product) -> None:
    add_product("Apple", category="fruit")
    pipeline = ReceiptPipeline(
        ReceiptParser(reference_date=REFERENCE),
        normalizer,
        PriceTracker(history),
        min_store_confidence=0.9,
    )

    result = pipeline.process(WALMART_RECEIPT)

    assert result.recorded_count == 2
    assert {obs.store_id for obs in history.query()} == {"walmart"}


def test_from_settings_applies_minimum_store_confidence(tmp_path) -> None:
    db_path = tmp_path / "pricey.sqlite3"
    settings = Settings(
        embedding_url="http://127.0.0.1:9",
        embedding_timeout=0.5,
        db_path=db_path,
        min_store_confidence=0.9,
    )

    pipeline = ReceiptPipeline.from_settings(settings)
    result = pipeline.process("Corner Shop\nApple 1.00", received_on=REFERENCE)

    assert pipeline.min_store_confidence == 0.9
    assert result.recorded_count == 0
    assert SqlitePriceHistory(SqliteDatabase(db_path)).query() == []
