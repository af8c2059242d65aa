"""Parse raw OCR text into structured receipt data."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

from pricey.domain.receipt import ParsedReceipt, RawText
from pricey.receipt.known_stores import KnownStore, default_known_stores
from pricey.runtime.logging import get_logger

from .ocr_parser import _extract_date, _extract_items, _extract_store, _extract_total

logger = get_logger(__name__)

ReceiptInput = str | RawText | dict[str, Any] | None


def _to_text(raw: ReceiptInput) -> str:
    if raw is None:
        return ""
    if isinstance(raw, RawText):
        return raw.text
    if isinstance(raw, dict):
        return RawText.from_ocr_result(raw).text
    return str(raw)


def _numbered_lines(text: str) -> list[tuple[int, str]]:
    """Trimmed non-empty lines paired with their 1-based position (blank lines counted)."""
    numbered = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if stripped:
            numbered.append((line_number, stripped))
    return numbered


def parse_receipt(
    raw: ReceiptInput,
    known_stores: Sequence[KnownStore] | None = None,
    reference_date: date | None = None,
) -> ParsedReceipt:
    """
    Parse OCR text into a ParsedReceipt.

    This is a best-effort parser: malformed or empty input yields a receipt
    with empty fields rather than an error.

    Args:
        raw: Receipt text, a RawText, or an OCR service response dict
        known_stores: Store table for header matching. Defaults to the built-in table;
            runtime components pass the table loaded from rule files.
        reference_date: "Today" for date plausibility checks. Defaults to date.today().

    Returns:
        ParsedReceipt with the original text preserved in raw_text
    """
    text = _to_text(raw)
    numbered = _numbered_lines(text)
    lines = [line for _, line in numbered]
    stores = default_known_stores() if known_stores is None else known_stores

    receipt = ParsedReceipt(
        store=_extract_store(lines, stores),
        date=_extract_date(lines, reference_date),
        items=_extract_items(numbered),
        total=_extract_total(lines),
        raw_text=text,
    )
    logger.debug(
        "Parsed receipt: store=%s date=%s items=%d total=%s",
        receipt.store.name if receipt.store else None,
        receipt.date,
        len(receipt.items),
        receipt.total,
    )
    return receipt


class ReceiptParser:
    """Receipt parser bound to a store table and reference date."""

    def __init__(
        self,
        known_stores: Sequence[KnownStore] | None = None,
        reference_date: date | None = None,
    ) -> None:
        self.known_stores = tuple(known_stores) if known_stores is not None else default_known_stores()
        self.reference_date = reference_date

    def parse(self, raw: ReceiptInput) -> ParsedReceipt:
        return parse_receipt(raw, known_stores=self.known_stores, reference_date=self.reference_date)
