"""Data models for receipt parsing."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

DEFAULT_UNIT = "pcs"


@dataclass(frozen=True)
class OcrLine:
    """One line of OCR output."""

    text: str
    confidence: float | None = None  # advisory only; not used by the parser
    bbox: tuple[float, float, float, float] | None = None


@dataclass(frozen=True)
class RawText:
    """OCR engine output as an ordered sequence of lines."""

    lines: tuple[OcrLine, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)

    @classmethod
    def from_string(cls, text: str | None) -> RawText:
        if not text:
            return cls()
        return cls(tuple(OcrLine(text=line) for line in text.split("\n")))

    @classmethod
    def from_ocr_result(cls, ocr_result: Mapping[str, Any]) -> RawText:
        """Build RawText from an OCR service response.

        Accepts ``{"full_text": ..., "pages": [{"lines": [{"text": ..., "words": [...]}]}]}``.
        Line confidence is the mean of its word confidences, and the line bbox
        is the union of its word boxes when every word has one. Entries of the
        wrong shape are skipped; with no usable lines ``full_text`` is used.
        """
        if not isinstance(ocr_result, Mapping):
            return cls()

        lines: list[OcrLine] = []
        for page in _mappings(ocr_result.get("pages")):
            for line in _mappings(page.get("lines")):
                words = _mappings(line.get("words"))
                confidences = [c for c in (_as_float(w.get("confidence")) for w in words) if c is not None]
                confidence = sum(confidences) / len(confidences) if confidences else None
                text = line.get("text")
                if not isinstance(text, str):
                    text = " ".join(str(w.get("text", "")) for w in words)
                lines.append(OcrLine(text=text, confidence=confidence, bbox=_union_bbox(words)))

        if lines:
            return cls(tuple(lines))
        full_text = ocr_result.get("full_text")
        return cls.from_string(full_text if isinstance(full_text, str) else "")


def _mappings(value: Any) -> list[Mapping[str, Any]]:
    """Mapping entries of a JSON list; anything else counts as empty."""
    if not isinstance(value, (list, tuple)):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _bbox_points(bbox: Any) -> list[tuple[float, float]] | None:
    """Corner points of a flat [x0, y0, x1, y1] box or a polygon of [x, y] points."""
    if not isinstance(bbox, (list, tuple)) or not bbox:
        return None
    if all(isinstance(p, (list, tuple)) and len(p) >= 2 for p in bbox):
        raw = [(p[0], p[1]) for p in bbox]
    elif len(bbox) >= 4:
        raw = [(bbox[0], bbox[1]), (bbox[2], bbox[3])]
    else:
        return None
    points: list[tuple[float, float]] = []
    for x, y in raw:
        fx, fy = _as_float(x), _as_float(y)
        if fx is None or fy is None:
            return None
        points.append((fx, fy))
    return points


def _union_bbox(words: list[Mapping[str, Any]]) -> tuple[float, float, float, float] | None:
    """Return (x0, y0, x1, y1) covering all word boxes, or None."""
    xs: list[float] = []
    ys: list[float] = []
    for word in words:
        points = _bbox_points(word.get("bbox"))
        if points is None:
            return None
        xs.extend(x for x, _ in points)
        ys.extend(y for _, y in points)
    if not xs:
        return None
    return (min(xs), min(ys), max(xs), max(ys))


@dataclass(frozen=True)
class StoreGuess:
    """Detected store name with a heuristic confidence."""

    name: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "confidence": self.confidence}


@dataclass
class ParsedItem:
    """A single line item recovered from receipt text."""

    description: str
    price: Decimal
    quantity: Decimal = Decimal("1")
    unit: str = DEFAULT_UNIT
    line_number: int = 0  # 1-based line in the source text

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "quantity": str(self.quantity),
            "unit": self.unit,
            "price": str(self.price),
            "lineNumber": self.line_number,
        }


@dataclass
class ParsedReceipt:
    """Parsed receipt data.

    ``total`` is whatever the receipt states; it is not checked against
    the item prices.
    """

    store: StoreGuess | None = None
    date: date | None = None
    items: list[ParsedItem] = field(default_factory=list)
    total: Decimal | None = None
    raw_text: str = ""

    @property
    def item_sum(self) -> Decimal:
        return sum((item.price for item in self.items), Decimal("0"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "store": self.store.to_dict() if self.store else None,
            "date": self.date.isoformat() if self.date else None,
            "items": [item.to_dict() for item in self.items],
            "total": str(self.total) if self.total is not None else None,
            "rawText": self.raw_text,
        }
