"""Brand extraction from free-text item descriptions."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

BUILTIN_BRANDS: tuple[str, ...] = (
    "gala",
    "chiquita",
    "barilla",
    "heinz",
    "nestle",
    "danone",
    "coca cola",
    "milka",
)


@dataclass(frozen=True)
class BrandMatch:
    brand: str
    remainder: str  # description with the brand removed


def build_brand_list(brand_configs: Sequence[Mapping[str, Any]] | None = None) -> tuple[str, ...]:
    """Merge built-in brands with TOML ``brands = [...]`` lists, lower-cased and de-duplicated."""
    seen: dict[str, None] = {}
    for brand in BUILTIN_BRANDS:
        seen.setdefault(brand, None)
    for config in brand_configs or ():
        raw = config.get("brands", [])
        if isinstance(raw, str):
            raw = [raw]
        for brand in raw:
            value = re.sub(r"\s+", " ", str(brand).strip().lower())
            if value:
                seen.setdefault(value, None)
    return tuple(seen)


@lru_cache(maxsize=1)
def default_brands() -> tuple[str, ...]:
    return build_brand_list()


@lru_cache(maxsize=512)
def _brand_pattern(brand: str) -> re.Pattern[str]:
    parts = [re.escape(part) for part in brand.split()]
    return re.compile(r"(?<!\w)" + r"\s+".join(parts) + r"(?!\w)", re.IGNORECASE)


def extract_brand(description: str, brands: Iterable[str] | None = None) -> BrandMatch | None:
    """Find a known brand in the description and strip it out.

    Two-word brands are tried before single-word brands, then longer before
    shorter, so "coca cola" wins over a hypothetical "cola". If removing the
    brand would leave no text, the description is kept intact.

    Returns:
        BrandMatch with the canonical (lower-case) brand and the remaining
        text, or None when no brand is present.
    """
    if not description:
        return None

    candidates = sorted(
        brands if brands is not None else default_brands(),
        key=lambda b: (len(b.split()) >= 2, len(b)),
        reverse=True,
    )
    for brand in candidates:
        match = _brand_pattern(brand).search(description)
        if not match:
            continue
        remainder = description[: match.start()] + " " + description[match.end() :]
        remainder = re.sub(r"\s+", " ", remainder).strip()
        if not re.search(r"\w", remainder):
            remainder = description.strip()
        return BrandMatch(brand=brand, remainder=remainder)
    return None
