"""Data models for the product catalog and normalization results."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any

STRATEGY_SEMANTIC = "semantic"
STRATEGY_FUZZY = "fuzzy"
STRATEGY_KEYWORD = "keyword"
STRATEGY_NEW_PRODUCT = "new_product"


def normalize_product_name(name: str) -> str:
    """Canonical catalog key: NFC, lower-case, punctuation dropped, single spaces."""
    text = unicodedata.normalize("NFC", name or "").lower()
    text = re.sub(r"[^\w\s]", " ", text)
    text = text.replace("_", " ")
    return re.sub(r"\s+", " ", text).strip()


@dataclass
class CatalogProduct:
    """A canonical product shared across stores."""

    product_id: str
    name: str
    category: str
    brand: str | None = None
    embedding: list[float] | None = None
    normalized_name: str = field(default="")

    def __post_init__(self) -> None:
        if not self.normalized_name:
            self.normalized_name = normalize_product_name(self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.product_id,
            "name": self.name,
            "normalizedName": self.normalized_name,
            "category": self.category,
            "brand": self.brand,
            "embedding": list(self.embedding) if self.embedding is not None else None,
        }


@dataclass(frozen=True)
class NormalizationResult:
    """Resolution of one item description to a catalog product."""

    generic_product_id: str
    generic_product_name: str
    category: str
    brand: str | None
    confidence: float  # 0.0 to 1.0
    strategy: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "genericProductId": self.generic_product_id,
            "genericProductName": self.generic_product_name,
            "category": self.category,
            "brand": self.brand,
            "confidence": self.confidence,
            "strategy": self.strategy,
        }
