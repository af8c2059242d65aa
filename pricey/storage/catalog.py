"""Product catalog interface and in-process implementation."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Sequence
from typing import Protocol

from pricey.domain.product import CatalogProduct, normalize_product_name
from pricey.util.similarity import cosine_similarity


class ProductCatalog(Protocol):
    """Shared catalog of canonical products.

    Implementations raise ``CatalogUnavailable`` when the backing store fails.
    """

    def all_products(self) -> list[CatalogProduct]: ...

    def get(self, product_id: str) -> CatalogProduct | None: ...

    def nearest(self, vector: Sequence[float], k: int = 1) -> list[tuple[CatalogProduct, float]]: ...

    def upsert(self, name: str, category: str, brand: str | None = None) -> CatalogProduct: ...

    def set_embedding(self, product_id: str, vector: Sequence[float]) -> None: ...


def new_product_id() -> str:
    return uuid.uuid4().hex


def rank_by_similarity(
    products: Sequence[CatalogProduct],
    vector: Sequence[float],
    k: int,
) -> list[tuple[CatalogProduct, float]]:
    """Top-k products by cosine similarity; products without embeddings are skipped."""
    scored = [
        (product, cosine_similarity(vector, product.embedding)) for product in products if product.embedding
    ]
    # Stable sort keeps catalog order among equal scores
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[: max(k, 0)]


class InMemoryProductCatalog:
    """Thread-safe catalog held in process memory.

    Products keep insertion order. ``upsert`` is keyed on the normalized
    name, so concurrent creations of the same product resolve to one entry.
    """

    def __init__(self, products: Sequence[CatalogProduct] = ()) -> None:
        self._lock = threading.Lock()
        self._products: dict[str, CatalogProduct] = {}
        self._by_name: dict[str, str] = {}
        for product in products:
            self._products[product.product_id] = product
            self._by_name.setdefault(product.normalized_name, product.product_id)

    def all_products(self) -> list[CatalogProduct]:
        with self._lock:
            return list(self._products.values())

    def get(self, product_id: str) -> CatalogProduct | None:
        with self._lock:
            return self._products.get(product_id)

    def nearest(self, vector: Sequence[float], k: int = 1) -> list[tuple[CatalogProduct, float]]:
        return rank_by_similarity(self.all_products(), vector, k)

    def upsert(self, name: str, category: str, brand: str | None = None) -> CatalogProduct:
        normalized = normalize_product_name(name)
        with self._lock:
            existing_id = self._by_name.get(normalized)
            if existing_id is not None:
                return self._products[existing_id]
            product = CatalogProduct(
                product_id=new_product_id(),
                name=name,
                category=category,
                brand=brand,
                normalized_name=normalized,
            )
            self._products[product.product_id] = product
            self._by_name[normalized] = product.product_id
            return product

    def set_embedding(self, product_id: str, vector: Sequence[float]) -> None:
        with self._lock:
            product = self._products.get(product_id)
            if product is not None:
                product.embedding = [float(v) for v in vector]

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)
