"""Core domain models for pricey.

This module provides the data models shared across pipeline stages:
- RawText, ParsedReceipt, ParsedItem: receipt parsing models
- CatalogProduct, NormalizationResult: product catalog models
- PriceObservation, PriceTrend: price history models
- ShoppingListItem, StoreRecommendation, MultiStoreRecommendation: optimizer models

Usage:
    from pricey.domain import ParsedReceipt, NormalizationResult
"""

from pricey.domain.prices import LastKnownPrice, PriceObservation, PriceTrend
from pricey.domain.product import CatalogProduct, NormalizationResult, normalize_product_name
from pricey.domain.receipt import OcrLine, ParsedItem, ParsedReceipt, RawText, StoreGuess
from pricey.domain.shopping import (
    ItemQuote,
    MultiStoreRecommendation,
    ShoppingListItem,
    StoreAllocation,
    StoreRecommendation,
)

__all__ = [
    "CatalogProduct",
    "ItemQuote",
    "LastKnownPrice",
    "MultiStoreRecommendation",
    "NormalizationResult",
    "OcrLine",
    "ParsedItem",
    "ParsedReceipt",
    "PriceObservation",
    "PriceTrend",
    "RawText",
    "ShoppingListItem",
    "StoreAllocation",
    "StoreGuess",
    "StoreRecommendation",
    "normalize_product_name",
]
