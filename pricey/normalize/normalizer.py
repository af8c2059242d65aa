"""Map free-text item descriptions to canonical catalog products.

Matching runs as an ordered cascade of (strategy, threshold) stages:

1. semantic: embedding nearest neighbour, cosine similarity >= 0.7
2. fuzzy: token-set similarity against catalog names >= 0.7
3. keyword: whole-word overlap with catalog names, fixed confidence 0.5

The first stage whose score clears its threshold wins. If none does, the
best candidate at or above the new-product floor (0.3) is returned;
otherwise a new catalog product is created with confidence 1.0.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pricey.domain.product import (
    STRATEGY_FUZZY,
    STRATEGY_KEYWORD,
    STRATEGY_NEW_PRODUCT,
    STRATEGY_SEMANTIC,
    CatalogProduct,
    NormalizationResult,
    normalize_product_name,
)
from pricey.errors import CatalogUnavailable, CollaboratorUnavailable
from pricey.normalize.brands import default_brands, extract_brand
from pricey.normalize.cache import InMemoryTTLCache, ResultCache
from pricey.normalize.categories import CategoryRuleLayers, categorize_product
from pricey.normalize.embedding import EmbeddingBackend
from pricey.runtime.logging import get_logger
from pricey.util.similarity import token_set_ratio
from pricey.util.units import UNIT_PATTERN

if TYPE_CHECKING:
    from pricey.storage.catalog import ProductCatalog

logger = get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60
NEW_PRODUCT_FLOOR = 0.3
NEW_PRODUCT_CONFIDENCE = 1.0
KEYWORD_CONFIDENCE = 0.5
MIN_KEYWORD_LENGTH = 3

# "1,5kg", "500 ml", "4x", "3,5%"
SIZE_TOKEN = re.compile(
    r"(?<!\w)\d+(?:[.,]\d+)?\s*(?:(?:" + UNIT_PATTERN + r")(?!\w)|%)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class CascadeStage:
    """One matching strategy and the score it must reach to be accepted."""

    strategy: str
    threshold: float


DEFAULT_CASCADE: tuple[CascadeStage, ...] = (
    CascadeStage(STRATEGY_SEMANTIC, 0.7),
    CascadeStage(STRATEGY_FUZZY, 0.7),
    CascadeStage(STRATEGY_KEYWORD, KEYWORD_CONFIDENCE),
)


@dataclass(frozen=True)
class StageMatch:
    product: CatalogProduct
    confidence: float
    strategy: str


def cache_key(description: str) -> str:
    return " ".join(description.lower().split())


def match_text_for(description: str) -> str:
    """Description with size tokens and punctuation removed, normalized for matching."""
    stripped = normalize_product_name(SIZE_TOKEN.sub(" ", description))
    return stripped or normalize_product_name(description)


class _CallContext:
    """Per-call state shared between stages (the catalog is listed at most once)."""

    def __init__(self, catalog: ProductCatalog, match_text: str, timeout: float | None) -> None:
        self.catalog = catalog
        self.match_text = match_text
        self.timeout = timeout
        self._products: list[CatalogProduct] | None = None

    def products(self) -> list[CatalogProduct]:
        if self._products is None:
            self._products = self.catalog.all_products()
        return self._products


class ProductNormalizer:
    """Resolve item descriptions against a shared product catalog.

    Args:
        catalog: Catalog handle; only the new-product stage writes to it
        embeddings: Embedding backend for the semantic stage and new products
        cache: Description -> result cache. Defaults to an in-process TTL cache.
        brands: Known brand tokens. Defaults to the built-in list.
        category_rules: Keyword -> category rules for new products
        cascade: Ordered matching stages. Defaults to DEFAULT_CASCADE.
        cache_ttl_seconds: Lifetime of cached results
    """

    def __init__(
        self,
        catalog: ProductCatalog,
        embeddings: EmbeddingBackend,
        cache: ResultCache | None = None,
        brands: Sequence[str] | None = None,
        category_rules: CategoryRuleLayers | None = None,
        cascade: Sequence[CascadeStage] | None = None,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
    ) -> None:
        self.catalog = catalog
        self.embeddings = embeddings
        self.cache = cache if cache is not None else InMemoryTTLCache()
        self.brands = tuple(brands) if brands is not None else default_brands()
        self.category_rules = category_rules
        self.cascade = tuple(cascade) if cascade is not None else DEFAULT_CASCADE
        self.cache_ttl_seconds = cache_ttl_seconds

        self._matchers: dict[str, Callable[[_CallContext], StageMatch | None]] = {
            STRATEGY_SEMANTIC: self._match_semantic,
            STRATEGY_FUZZY: self._match_fuzzy,
            STRATEGY_KEYWORD: self._match_keyword,
        }
        unknown = [stage.strategy for stage in self.cascade if stage.strategy not in self._matchers]
        if unknown:
            raise ValueError(f"Unknown cascade strategies: {', '.join(unknown)}")

    def normalize(self, description: str, timeout: float | None = None) -> NormalizationResult:
        """
        Resolve one item description.

        Args:
            description: Item text as printed on the receipt
            timeout: Seconds allowed for the embedding call; on timeout the
                semantic stage counts as no match

        Raises:
            ValueError: if the description is blank
            CatalogUnavailable: if a new product is needed and the catalog cannot be written
        """
        key = cache_key(description or "")
        if not key:
            raise ValueError("description must not be blank")

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %r", key)
            return cached

        brand_match = extract_brand(description, self.brands)
        brand = brand_match.brand if brand_match else None
        base_text = brand_match.remainder if brand_match else description
        ctx = _CallContext(self.catalog, match_text_for(base_text), timeout)

        best: StageMatch | None = None
        accepted: StageMatch | None = None
        for stage in self.cascade:
            match = self._matchers[stage.strategy](ctx)
            logger.debug(
                "Stage %s for %r: %s",
                stage.strategy,
                ctx.match_text,
                f"{match.product.name} ({match.confidence:.3f})" if match else "no match",
            )
            if match is None:
                continue
            if match.confidence >= stage.threshold:
                accepted = match
                break
            if best is None or match.confidence > best.confidence:
                best = match

        if accepted is None and best is not None and best.confidence >= NEW_PRODUCT_FLOOR:
            accepted = best

        if accepted is not None:
            result = NormalizationResult(
                generic_product_id=accepted.product.product_id,
                generic_product_name=accepted.product.name,
                category=accepted.product.category,
                brand=brand or accepted.product.brand,
                confidence=accepted.confidence,
                strategy=accepted.strategy,
            )
        else:
            result = self._create_product(ctx.match_text, brand, timeout)

        self.cache.set(key, result, self.cache_ttl_seconds)
        return result

    def _match_semantic(self, ctx: _CallContext) -> StageMatch | None:
        try:
            vector = self.embeddings.embed(ctx.match_text, timeout=ctx.timeout)
            neighbours = self.catalog.nearest(vector, k=1)
        except CollaboratorUnavailable as e:
            logger.warning("Semantic match unavailable for %r: %s", ctx.match_text, e)
            return None
        if not neighbours:
            return None
        product, similarity = neighbours[0]
        return StageMatch(product, min(max(similarity, 0.0), 1.0), STRATEGY_SEMANTIC)

    def _match_fuzzy(self, ctx: _CallContext) -> StageMatch | None:
        try:
            products = ctx.products()
        except CatalogUnavailable as e:
            logger.warning("Fuzzy match unavailable for %r: %s", ctx.match_text, e)
            return None

        best_product: CatalogProduct | None = None
        best_score = 0.0
        for product in products:
            score = token_set_ratio(ctx.match_text, product.normalized_name) / 100
            if score > best_score:
                best_product, best_score = product, score
        if best_product is None:
            return None
        return StageMatch(best_product, best_score, STRATEGY_FUZZY)

    def _match_keyword(self, ctx: _CallContext) -> StageMatch | None:
        words = {w for w in ctx.match_text.split() if len(w) >= MIN_KEYWORD_LENGTH and not w.isdigit()}
        if not words:
            return None
        try:
            products = ctx.products()
        except CatalogUnavailable as e:
            logger.warning("Keyword match unavailable for %r: %s", ctx.match_text, e)
            return None

        best_product: CatalogProduct | None = None
        best_hits = 0
        for product in products:
            hits = len(words & set(product.normalized_name.split()))
            if hits > best_hits:
                best_product, best_hits = product, hits
        if best_product is None:
            return None
        return StageMatch(best_product, KEYWORD_CONFIDENCE, STRATEGY_KEYWORD)

    def _create_product(self, name: str, brand: str | None, timeout: float | None) -> NormalizationResult:
        category = categorize_product(name, rule_layers=self.category_rules)
        product = self.catalog.upsert(name, category, brand)
        logger.info("New catalog product %s: %r (%s)", product.product_id, product.name, product.category)

        if not product.embedding:
            try:
                self.catalog.set_embedding(product.product_id, self.embeddings.embed(name, timeout=timeout))
            except CollaboratorUnavailable as e:
                logger.warning("Could not embed new product %s: %s", product.product_id, e)

        return NormalizationResult(
            generic_product_id=product.product_id,
            generic_product_name=product.name,
            category=product.category,
            brand=brand or product.brand,
            confidence=NEW_PRODUCT_CONFIDENCE,
            strategy=STRATEGY_NEW_PRODUCT,
        )

    def backfill_embeddings(self, timeout: float | None = None) -> int:
        """Embed every catalog product that has no embedding yet.

        Returns:
            Number of products that received an embedding.
        """
        count = 0
        for product in self.catalog.all_products():
            if product.embedding:
                continue
            try:
                vector = self.embeddings.embed(product.normalized_name, timeout=timeout)
            except CollaboratorUnavailable as e:
                logger.warning("Skipping embedding backfill for %s: %s", product.product_id, e)
                continue
            self.catalog.set_embedding(product.product_id, vector)
            count += 1
        logger.info("Backfilled embeddings for %d products", count)
        return count
