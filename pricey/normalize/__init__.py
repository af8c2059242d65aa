"""Product normalization: item description -> canonical catalog product."""

from pricey.normalize.brands import BrandMatch, build_brand_list, default_brands, extract_brand
from pricey.normalize.cache import InMemoryTTLCache, ResultCache
from pricey.normalize.categories import CategoryRuleLayers, build_category_rule_layers, categorize_product
from pricey.normalize.embedding import EmbeddingBackend, OllamaEmbeddingClient
from pricey.normalize.normalizer import DEFAULT_CASCADE, CascadeStage, ProductNormalizer

__all__ = [
    "BrandMatch",
    "CascadeStage",
    "CategoryRuleLayers",
    "DEFAULT_CASCADE",
    "EmbeddingBackend",
    "InMemoryTTLCache",
    "OllamaEmbeddingClient",
    "ProductNormalizer",
    "ResultCache",
    "build_brand_list",
    "build_category_rule_layers",
    "categorize_product",
    "default_brands",
    "extract_brand",
]
