"""Runtime glue for one receipt job: parse -> normalize -> record prices."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from pricey.domain.prices import PriceObservation
from pricey.domain.product import NormalizationResult
from pricey.domain.receipt import ParsedItem, ParsedReceipt
from pricey.errors import CatalogUnavailable, PriceHistoryUnavailable
from pricey.normalize.cache import InMemoryTTLCache
from pricey.normalize.embedding import OllamaEmbeddingClient
from pricey.normalize.normalizer import ProductNormalizer
from pricey.prices.tracker import PriceTracker
from pricey.receipt.ocr_parser.common import STORE_CONFIDENCE_KNOWN
from pricey.receipt.ocr_result_parser import ReceiptInput, ReceiptParser
from pricey.runtime.brand_rules import load_known_brands
from pricey.runtime.category_rules import load_category_rule_layers
from pricey.runtime.logging import get_logger
from pricey.runtime.settings import DEFAULT_MIN_STORE_CONFIDENCE, Settings, load_settings
from pricey.runtime.store_rules import load_known_stores
from pricey.storage.price_history import SqlitePriceHistory
from pricey.storage.sqlite import SqliteDatabase
from pricey.storage.sqlite_catalog import SqliteProductCatalog

logger = get_logger(__name__)


def slugify_store_id(name: str) -> str:
    """Stable store id from a display name, e.g. "Trader Joe's" -> "trader-joes"."""
    text = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii").lower()
    text = re.sub(r"['’]", "", text)
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-") or "unknown-store"


@dataclass
class NormalizedItem:
    """One receipt line with its normalization and recorded price (if any)."""

    item: ParsedItem
    normalization: NormalizationResult | None = None
    observation: PriceObservation | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "item": self.item.to_dict(),
            "normalization": self.normalization.to_dict() if self.normalization else None,
            "observation": self.observation.to_dict() if self.observation else None,
            "error": self.error,
        }


@dataclass
class PipelineResult:
    receipt: ParsedReceipt
    store_id: str | None
    purchase_date: date
    items: list[NormalizedItem] = field(default_factory=list)

    @property
    def normalized_count(self) -> int:
        return sum(1 for entry in self.items if entry.normalization is not None)

    @property
    def recorded_count(self) -> int:
        return sum(1 for entry in self.items if entry.observation is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "receipt": self.receipt.to_dict(),
            "storeId": self.store_id,
            "purchaseDate": self.purchase_date.isoformat(),
            "items": [entry.to_dict() for entry in self.items],
        }


class ReceiptPipeline:
    """Process one receipt per call; the caller owns scheduling and concurrency.

    Prices are recorded only when the detected store's confidence is at least
    ``min_store_confidence``; items are still normalized either way.
    """

    def __init__(
        self,
        parser: ReceiptParser,
        normalizer: ProductNormalizer,
        tracker: PriceTracker,
        embedding_timeout: float | None = None,
        min_store_confidence: float = DEFAULT_MIN_STORE_CONFIDENCE,
    ) -> None:
        self.parser = parser
        self.normalizer = normalizer
        self.tracker = tracker
        self.embedding_timeout = embedding_timeout
        self.min_store_confidence = min_store_confidence

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ReceiptPipeline:
        """Build a pipeline on SQLite storage, the configured embedding service and rule files."""
        settings = settings or load_settings()
        if settings.db_path is None:
            raise ValueError("Settings.db_path is required to build a SQLite-backed pipeline")
        db = SqliteDatabase(settings.db_path)
        normalizer = ProductNormalizer(
            catalog=SqliteProductCatalog(db),
            embeddings=OllamaEmbeddingClient(
                settings.embedding_url,
                settings.embedding_model,
                timeout=settings.embedding_timeout,
            ),
            cache=InMemoryTTLCache(max_entries=settings.cache_max_entries),
            brands=load_known_brands(),
            category_rules=load_category_rule_layers(),
            cache_ttl_seconds=settings.cache_ttl_seconds,
        )
        return cls(
            parser=ReceiptParser(known_stores=load_known_stores()),
            normalizer=normalizer,
            tracker=PriceTracker(SqlitePriceHistory(db)),
            embedding_timeout=settings.embedding_timeout,
            min_store_confidence=settings.min_store_confidence,
        )

    def process(self, raw: ReceiptInput, received_on: date | None = None) -> PipelineResult:
        """
        Parse a receipt, normalize its items in order and record their prices.

        Args:
            raw: Receipt text, RawText or OCR service response
            received_on: Date used when the receipt shows none. Defaults to today.

        Returns:
            PipelineResult; per-item failures are reported on the item, not raised
        """
        receipt = self.parser.parse(raw)
        purchase_date = receipt.date or received_on or date.today()
        store_id = slugify_store_id(receipt.store.name) if receipt.store else None
        record_store_id = self._recording_store_id(receipt, store_id)

        result = PipelineResult(receipt=receipt, store_id=store_id, purchase_date=purchase_date)
        for item in receipt.items:
            result.items.append(self._process_item(item, record_store_id, purchase_date))

        logger.info(
            "Processed receipt: store=%s date=%s items=%d normalized=%d recorded=%d",
            store_id,
            purchase_date,
            len(result.items),
            result.normalized_count,
            result.recorded_count,
        )
        return result

    def _recording_store_id(self, receipt: ParsedReceipt, store_id: str | None) -> str | None:
        """Store id to record prices under, or None when the store is unknown or too uncertain."""
        if not receipt.items:
            return store_id
        if receipt.store is None or store_id is None:
            logger.warning("No store detected; prices for %d items will not be recorded", len(receipt.items))
            return None
        confidence = receipt.store.confidence
        if confidence < self.min_store_confidence:
            logger.warning(
                "Store %r detected with confidence %.2f (minimum %.2f); prices for %d items will not be recorded",
                receipt.store.name,
                confidence,
                self.min_store_confidence,
                len(receipt.items),
            )
            return None
        if confidence < STORE_CONFIDENCE_KNOWN:
            logger.info("Recording prices under unrecognized store %r (%s)", receipt.store.name, store_id)
        return store_id

    def _process_item(self, item: ParsedItem, store_id: str | None, purchase_date: date) -> NormalizedItem:
        entry = NormalizedItem(item=item)
        try:
            entry.normalization = self.normalizer.normalize(item.description, timeout=self.embedding_timeout)
        except CatalogUnavailable as e:
            logger.error("Could not normalize %r (line %d): %s", item.description, item.line_number, e)
            entry.error = str(e)
            return entry

        # Discount and deposit-return lines carry no shelf price
        if store_id is None or item.price <= Decimal("0"):
            return entry

        try:
            entry.observation = self.tracker.record(
                entry.normalization.generic_product_id,
                store_id,
                item.price,
                item.unit,
                purchase_date,
                quantity=item.quantity,
            )
        except PriceHistoryUnavailable as e:
            logger.error("Could not record price for %r: %s", item.description, e)
            entry.error = str(e)
        return entry
