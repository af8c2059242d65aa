"""Composable OCR receipt parser components."""

from .fields_parser import (
    _extract_date,
    _extract_store,
    _extract_total,
)
from .items_text_parser import _extract_items

__all__ = [
    "_extract_date",
    "_extract_items",
    "_extract_store",
    "_extract_total",
]
