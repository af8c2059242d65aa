"""End-to-end tests for receipt text parsing."""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest
from pricey.domain.receipt import OcrLine, RawText
from pricey.receipt import ReceiptParser, build_known_stores, parse_receipt
from pricey.receipt.ocr_result_parser import ReceiptInput

REFERENCE = date(2024, 2, 1)

WALMART_RECEIPT = (
    "WALMART\n123 Main St\nDate: 01/15/2024\n\nApple Red 1kg     €2.50\nBread             €1.99\n\nTotal:            €4.49"
)

BILLA_RECEIPT = """\
BILLA AG
Filiale 0815 Wien
Datum: 12.01.2024 18:03

Bio Vollmilch 1 l      1,39 A
2 x Semmel             0,70 A
1,5 kg Bananen         2,84 A
Rabatt                -0,30 A

SUMME EUR              4,63
Bar bezahlt           10,00
Rückgeld               5,37
Vielen Dank für Ihren Einkauf
"""


def test_walmart_receipt() -> None:
    receipt = parse_receipt(WALMART_RECEIPT, reference_date=REFERENCE)

    assert receipt.store is not None
    assert "walmart" in receipt.store.name.lower()
    assert receipt.date == date(2024, 1, 15)
    assert len(receipt.items) == 2
    first = receipt.items[0]
    assert first.description == "Apple Red"
    assert first.quantity == Decimal("1")
    assert first.unit == "kg"
    assert first.price == Decimal("2.50")
    assert receipt.items[1].description == "Bread"
    assert receipt.items[1].price == Decimal("1.99")
    assert receipt.total == Decimal("4.49")


def test_line_numbers_count_blank_lines() -> None:
    receipt = parse_receipt(WALMART_RECEIPT, reference_date=REFERENCE)

    assert [item.line_number for item in receipt.items] == [5, 6]


def test_empty_receipt() -> None:
    receipt = parse_receipt("")

    assert receipt.store is None
    assert receipt.date is None
    assert receipt.items == []
    assert receipt.total is None


def test_none_input_is_treated_as_empty() -> None:
    receipt = parse_receipt(None)

    assert receipt.store is None
    assert receipt.items == []
    assert receipt.raw_text == ""


def test_german_receipt() -> None:
    receipt = parse_receipt(BILLA_RECEIPT, reference_date=REFERENCE)

    assert receipt.store is not None
    assert receipt.store.name == "Billa"
    assert receipt.date == date(2024, 1, 12)
    assert [(item.description, item.quantity, item.unit, item.price) for item in receipt.items] == [
        ("Bio Vollmilch", Decimal("1"), "l", Decimal("1.39")),
        ("Semmel", Decimal("2"), "pcs", Decimal("0.70")),
        ("Bananen", Decimal("1.5"), "kg", Decimal("2.84")),
        ("Rabatt", Decimal("1"), "pcs", Decimal("-0.30")),
    ]
    assert receipt.total == Decimal("4.63")


def test_total_is_not_reconciled_with_items() -> None:
    receipt = parse_receipt("Shop\nApple 1.00\nPear 2.00\nTotal 10.00", reference_date=REFERENCE)

    assert receipt.total == Decimal("10.00")
    assert receipt.item_sum == Decimal("3.00")


def test_raw_text_is_preserved() -> None:
    receipt = parse_receipt(WALMART_RECEIPT, reference_date=REFERENCE)

    assert receipt.raw_text == WALMART_RECEIPT


@pytest.mark.parametrize(
    "text",
    [
        "",
        "\n\n\n",
        "TOTAL",
        "€€€ 1,2,3",
        "-0,00",
        "ÄÖÜ 12,34 €\nSumme 12,34",
        "x" * 1000,
        "1/1/1\n99.99.9999\n31.02.2024\nJan 99, 2024",
        "\t  \r\n  \x00 12.00",
        WALMART_RECEIPT,
        {"pages": ["oops"]},
        {"pages": 5},
        {"pages": [{"lines": [{"words": [{"confidence": "n/a"}]}]}]},
        {"pages": [{"lines": "Milk 1.00"}], "full_text": 42},
        {"pages": [{"lines": [{"text": None, "words": [{"text": "Tea", "bbox": ["a", 0, 1, 1]}, 7]}]}]},
        {"pages": [{"lines": [{"text": "Eggs 2.00", "words": [{"bbox": [[0, 0], [1]]}]}]}]},
    ],
)
def test_parse_never_raises_and_is_idempotent(text: ReceiptInput) -> None:
    first = parse_receipt(text, reference_date=REFERENCE)
    second = parse_receipt(text, reference_date=REFERENCE)

    assert first == second
    for item in first.items:
        assert item.description
        assert item.price is not None


def test_parse_accepts_raw_text_lines() -> None:
    raw = RawText(lines=(OcrLine("TARGET", confidence=0.99), OcrLine("Milk 3.49", confidence=0.42)))

    receipt = parse_receipt(raw, reference_date=REFERENCE)

    assert receipt.store is not None
    assert receipt.store.name == "Target"
    assert [item.description for item in receipt.items] == ["Milk"]


def test_parse_accepts_ocr_service_response() -> None:
    ocr_result = {
        "full_text": "ignored when pages are present",
        "pages": [
            {
                "lines": [
                    {"text": "COSTCO WHOLESALE", "words": [{"text": "COSTCO", "confidence": 0.9}]},
                    {
                        "text": "Eggs 4.99",
                        "words": [
                            {"text": "Eggs", "confidence": 0.8, "bbox": [0, 0, 10, 5]},
                            {"text": "4.99", "confidence": 0.6, "bbox": [50, 0, 60, 5]},
                        ],
                    },
                ]
            }
        ],
    }

    raw = RawText.from_ocr_result(ocr_result)
    receipt = parse_receipt(ocr_result, reference_date=REFERENCE)

    assert raw.lines[1].confidence == pytest.approx(0.7)
    assert raw.lines[1].bbox == (0.0, 0.0, 60.0, 5.0)
    assert receipt.store is not None
    assert receipt.store.name == "Costco"
    assert [item.description for item in receipt.items] == ["Eggs"]


def test_ocr_response_without_pages_uses_full_text() -> None:
    raw = RawText.from_ocr_result({"full_text": "KROGER\nBread 2.00"})

    assert raw.text == "KROGER\nBread 2.00"


def test_receipt_parser_uses_configured_stores() -> None:
    parser = ReceiptParser(
        known_stores=build_known_stores([{"stores": [{"name": "Merkur", "aliases": ["merkur markt"]}]}]),
        reference_date=REFERENCE,
    )

    receipt = parser.parse("MERKUR MARKT\nKäse 3,99")

    assert receipt.store is not None
    assert receipt.store.name == "Merkur"
    assert receipt.store.confidence == 0.9


def test_to_dict_is_json_serializable() -> None:
    receipt = parse_receipt(WALMART_RECEIPT, reference_date=REFERENCE)

    payload = json.loads(json.dumps(receipt.to_dict()))

    assert payload["date"] == "2024-01-15"
    assert payload["total"] == "4.49"
    assert payload["items"][0] == {
        "description": "Apple Red",
        "quantity": "1",
        "unit": "kg",
        "price": "2.50",
        "lineNumber": 5,
    }


def test_ocr_response_with_malformed_entries_keeps_usable_lines() -> None:
    raw = RawText.from_ocr_result(
        {
            "pages": [
                "not a page",
                {"lines": [None, {"text": "SPAR", "words": [{"confidence": "n/a"}, {"confidence": 0.8}]}]},
                {"lines": [{"words": [{"text": "Milk"}, {"text": "1,19"}, "stray"], "bbox": "x"}]},
            ]
        }
    )

    assert [line.text for line in raw.lines] == ["SPAR", "Milk 1,19"]
    assert raw.lines[0].confidence == pytest.approx(0.8)
    assert raw.lines[1].confidence is None
    assert raw.lines[1].bbox is None


@pytest.mark.parametrize("ocr_result", [{"pages": 5}, {"pages": ["oops"]}, {"pages": None, "full_text": None}])
def test_ocr_response_without_usable_pages_is_empty(ocr_result: dict) -> None:
    assert RawText.from_ocr_result(ocr_result).lines == ()
