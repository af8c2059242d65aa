"""Shared pytest fixtures for pricey tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from pricey.domain.product import CatalogProduct
from pricey.errors import EmbeddingUnavailable
from pricey.normalize.cache import InMemoryTTLCache
from pricey.normalize.normalizer import ProductNormalizer
from pricey.storage.catalog import InMemoryProductCatalog
from pricey.storage.price_history import InMemoryPriceHistory
from pricey.storage.sqlite import SqliteDatabase

EMBEDDING_DIMENSION = 256


class FakeEmbeddingBackend:
    """Deterministic bag-of-words embeddings.

    Every distinct word gets its own axis, so cosine similarity is the
    word overlap: cos("apple red", "apple") == 1 / sqrt(2).
    """

    def __init__(self) -> None:
        self.vocabulary: dict[str, int] = {}
        self.calls: list[str] = []
        self.fail = False

    def embed(self, text: str, timeout: float | None = None) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingUnavailable("embedding service down")
        vector = [0.0] * EMBEDDING_DIMENSION
        for word in text.lower().split():
            index = self.vocabulary.setdefault(word, len(self.vocabulary))
            vector[index % EMBEDDING_DIMENSION] += 1.0
        return vector


class FrozenClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def embedder() -> FakeEmbeddingBackend:
    return FakeEmbeddingBackend()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def catalog() -> InMemoryProductCatalog:
    return InMemoryProductCatalog()


@pytest.fixture
def add_product(
    catalog: InMemoryProductCatalog, embedder: FakeEmbeddingBackend
) -> Callable[..., CatalogProduct]:
    """Create a catalog product with an embedding of its normalized name."""

    def _add(name: str, category: str = "other", brand: str | None = None, embed: bool = True) -> CatalogProduct:
        product = catalog.upsert(name, category, brand)
        if embed:
            catalog.set_embedding(product.product_id, embedder.embed(product.normalized_name))
        return catalog.get(product.product_id)

    return _add


@pytest.fixture
def normalizer(
    catalog: InMemoryProductCatalog, embedder: FakeEmbeddingBackend, clock: FrozenClock
) -> ProductNormalizer:
    return ProductNormalizer(catalog=catalog, embeddings=embedder, cache=InMemoryTTLCache(clock=clock))


@pytest.fixture
def history() -> InMemoryPriceHistory:
    return InMemoryPriceHistory()


@pytest.fixture
def sqlite_db(tmp_path) -> SqliteDatabase:
    return SqliteDatabase(tmp_path / "var" / "pricey.sqlite3")
