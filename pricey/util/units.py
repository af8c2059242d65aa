"""Receipt unit normalization and conversion to comparable base units."""

from __future__ import annotations

from decimal import Decimal

BASE_UNIT_MASS = "kg"
BASE_UNIT_VOLUME = "l"
BASE_UNIT_COUNT = "pcs"

# OCR/locale spellings -> canonical unit
_UNIT_ALIASES: dict[str, str] = {
    "kg": "kg",
    "kilo": "kg",
    "g": "g",
    "gr": "g",
    "grm": "g",
    "lb": "lb",
    "lbs": "lb",
    "1b": "lb",  # OCR misread of "lb"
    "oz": "oz",
    "l": "l",
    "ltr": "l",
    "lt": "l",
    "ml": "ml",
    "cl": "cl",
    "pcs": "pcs",
    "pc": "pcs",
    "pce": "pcs",
    "stk": "pcs",
    "st": "pcs",
    "ea": "pcs",
    "each": "pcs",
    "x": "pcs",
    "×": "pcs",
    "@": "pcs",
    "pk": "pcs",
}

# canonical unit -> (base unit, factor to base)
_TO_BASE: dict[str, tuple[str, Decimal]] = {
    "kg": (BASE_UNIT_MASS, Decimal("1")),
    "g": (BASE_UNIT_MASS, Decimal("0.001")),
    "lb": (BASE_UNIT_MASS, Decimal("0.45359237")),
    "oz": (BASE_UNIT_MASS, Decimal("0.028349523125")),
    "l": (BASE_UNIT_VOLUME, Decimal("1")),
    "ml": (BASE_UNIT_VOLUME, Decimal("0.001")),
    "cl": (BASE_UNIT_VOLUME, Decimal("0.01")),
    "pcs": (BASE_UNIT_COUNT, Decimal("1")),
}

# Regex alternation of every recognized unit spelling, longest first
UNIT_PATTERN = "|".join(
    sorted((alias for alias in _UNIT_ALIASES if alias.isalnum()), key=len, reverse=True)
)


def canonical_unit(unit: str | None) -> str:
    """Map a unit spelling to its canonical form; unknown units pass through lower-cased."""
    if not unit:
        return BASE_UNIT_COUNT
    key = unit.strip().lower().rstrip(".")
    return _UNIT_ALIASES.get(key, key)


def to_base_quantity(quantity: Decimal, unit: str) -> tuple[Decimal, str]:
    """Convert a quantity to its base unit.

    Unknown units are treated as counts so they still compare per piece.

    Returns:
        (quantity in base unit, base unit)
    """
    base_unit, factor = _TO_BASE.get(canonical_unit(unit), (BASE_UNIT_COUNT, Decimal("1")))
    return quantity * factor, base_unit
