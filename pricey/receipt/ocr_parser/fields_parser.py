"""Store/date/total extraction helpers."""

import re
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from pricey.domain.receipt import StoreGuess
from pricey.receipt.date_utils import find_dates, has_date_indicator, is_plausible_receipt_date
from pricey.receipt.known_stores import KnownStore

from .common import (
    ANY_AMOUNT,
    STORE_CONFIDENCE_FALLBACK,
    STORE_CONFIDENCE_KNOWN,
    STORE_SCAN_LINES,
    TOTAL_EXCLUDED,
    TOTAL_KEYWORDS,
    TOTAL_SCAN_LINES,
    parse_amount,
)


def _extract_store(lines: Sequence[str], known_stores: Sequence[KnownStore]) -> StoreGuess | None:
    """
    Detect the store from the receipt header.

    Strategy order:
    1. First of the leading lines that contains a known store alias
    2. Fall back to the first line, with OCR artifacts stripped
    """
    if not lines:
        return None

    header = lines[:STORE_SCAN_LINES]
    for line in header:
        for store in known_stores:
            if store.matches(line):
                return StoreGuess(name=store.name, confidence=STORE_CONFIDENCE_KNOWN)

    # Clean up common OCR artifacts
    cleaned = re.sub(r"[^\w\s&'-]", "", lines[0])
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if not cleaned:
        return None
    return StoreGuess(name=cleaned, confidence=STORE_CONFIDENCE_FALLBACK)


def _first_plausible_date(line: str, reference_date: date | None) -> date | None:
    for candidate in find_dates(line):
        if is_plausible_receipt_date(candidate, reference_date):
            return candidate
    return None


def _extract_date(lines: Sequence[str], reference_date: date | None = None) -> date | None:
    """Extract the purchase date (returns None if unknown).

    Lines carrying a date label ("Date:", "Datum") are tried first, then
    every line in order.
    """
    for line in lines:
        if has_date_indicator(line):
            found = _first_plausible_date(line, reference_date)
            if found:
                return found

    for line in lines:
        found = _first_plausible_date(line, reference_date)
        if found:
            return found
    return None


def _extract_total(lines: Sequence[str]) -> Decimal | None:
    """Extract the stated total from the receipt footer."""
    for line in reversed(lines[-TOTAL_SCAN_LINES:]):
        # Skip lines like "TOTAL NUMBER OF ITEMS" or "TOTAL SAVINGS"
        if TOTAL_EXCLUDED.search(line):
            continue
        keyword = TOTAL_KEYWORDS.search(line)
        if not keyword:
            continue
        amount_match = ANY_AMOUNT.search(line, keyword.end())
        if not amount_match:
            continue
        amount = parse_amount(amount_match.group("amount"))
        if amount is not None:
            return amount
    return None
