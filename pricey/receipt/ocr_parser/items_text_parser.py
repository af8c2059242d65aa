"""Text-line based receipt item extraction."""

from collections.abc import Sequence

from pricey.domain.receipt import ParsedItem
from pricey.runtime.logging import get_logger

from .common import clean_description, find_trailing_price, looks_like_noise, split_quantity_unit

logger = get_logger(__name__)


def _parse_item_line(line: str, line_number: int) -> ParsedItem | None:
    """Parse one "DESCRIPTION ... PRICE" line, or return None if it is not an item."""
    found = find_trailing_price(line)
    if found is None:
        return None
    price, price_start = found

    description, quantity, unit = split_quantity_unit(line[:price_start])
    description = clean_description(description)
    if not description:
        return None

    return ParsedItem(
        description=description,
        price=price,
        quantity=quantity,
        unit=unit,
        line_number=line_number,
    )


def _extract_items(lines: Sequence[tuple[int, str]]) -> list[ParsedItem]:
    """
    Extract line items from receipt text.

    Heuristic: an item is a non-noise line that ends in a price. Lines
    without a price (addresses, headers, wrapped descriptions) are dropped.

    Args:
        lines: (1-based line number, trimmed text) pairs for the non-empty lines
    """
    items: list[ParsedItem] = []
    for line_number, line in lines:
        if looks_like_noise(line):
            continue
        item = _parse_item_line(line, line_number)
        if item is None:
            continue
        items.append(item)

    logger.debug("Extracted %d items from %d lines", len(items), len(lines))
    return items
