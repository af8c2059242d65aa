from decimal import Decimal

import pytest
from pricey.receipt.ocr_parser.common import clean_description, parse_amount, split_quantity_unit
from pricey.receipt.ocr_parser.items_text_parser import _extract_items


def _numbered(lines: list[str]) -> list[tuple[int, str]]:
    return list(enumerate(lines, start=1))


def test_extract_items_supports_trailing_tax_marker() -> None:
    items = _extract_items(_numbered(["BREAD 2.49 A", "MILK 1L 1,19 B"]))

    assert [item.price for item in items] == [Decimal("2.49"), Decimal("1.19")]
    assert items[0].description == "BREAD"
    assert items[1].description == "MILK"
    assert items[1].unit == "l"


@pytest.mark.parametrize(
    ("line", "description", "price"),
    [
        ("Cheese 3,49 €", "Cheese", Decimal("3.49")),
        ("Wine EUR 5.99", "Wine", Decimal("5.99")),
        ("Coffee $ 4.50", "Coffee", Decimal("4.50")),
        ("Tea £1.20", "Tea", Decimal("1.20")),
        ("TV 1.234,56", "TV", Decimal("1234.56")),
        ("Laptop 1,234.56", "Laptop", Decimal("1234.56")),
    ],
)
def test_extract_items_price_formats(line: str, description: str, price: Decimal) -> None:
    items = _extract_items(_numbered([line]))

    assert len(items) == 1
    assert items[0].description == description
    assert items[0].price == price


@pytest.mark.parametrize(
    ("line", "description", "quantity", "unit"),
    [
        ("1.5 kg Bananas 2,99", "Bananas", Decimal("1.5"), "kg"),
        ("500g Mehl 0,89", "Mehl", Decimal("500"), "g"),
        ("2 x Milk 1.98", "Milk", Decimal("2"), "pcs"),
        ("3 @ Yogurt 0.99", "Yogurt", Decimal("3"), "pcs"),
        ("Semmel 4x 1,20", "Semmel", Decimal("4"), "pcs"),
        ("Apple Red 1kg €2.50", "Apple Red", Decimal("1"), "kg"),
        ("Potatoes 2 lbs 3.10", "Potatoes", Decimal("2"), "lb"),
        ("Eggs 10 Stk 2,79", "Eggs", Decimal("10"), "pcs"),
        ("Bread 1.99", "Bread", Decimal("1"), "pcs"),
    ],
)
def test_extract_items_quantity_and_unit(line: str, description: str, quantity: Decimal, unit: str) -> None:
    items = _extract_items(_numbered([line]))

    assert len(items) == 1
    assert items[0].description == description
    assert items[0].quantity == quantity
    assert items[0].unit == unit


def test_extract_items_skips_noise_lines() -> None:
    lines = [
        "Bananas 1.29",
        "Summe 12,50",
        "MwSt 20% 1,20",
        "Visa 12.50",
        "Rückgeld 0,00",
        "Subtotal 3.00",
        "Total 3.00",
        "Vielen Dank 0.00",
    ]

    items = _extract_items(_numbered(lines))

    assert [item.description for item in items] == ["Bananas"]


def test_noise_tokens_are_word_bounded() -> None:
    items = _extract_items(_numbered(["Dates Medjool 3.99", "Cashews 5.49"]))

    assert [item.description for item in items] == ["Dates Medjool", "Cashews"]


def test_extract_items_keeps_zero_and_negative_prices() -> None:
    items = _extract_items(_numbered(["Freebie Sticker 0.00", "Rabatt -0,50", "Coupon 1.00-"]))

    assert [(item.description, item.price) for item in items] == [
        ("Freebie Sticker", Decimal("0.00")),
        ("Rabatt", Decimal("-0.50")),
        ("Coupon", Decimal("-1.00")),
    ]


def test_extract_items_drops_lines_without_price_or_description() -> None:
    lines = ["123 Main St", "€2.50", "*** 1.00", "Wrapped description line"]

    assert _extract_items(_numbered(lines)) == []


def test_extract_items_strips_leading_article_numbers() -> None:
    items = _extract_items(_numbered(["4011800 Bananas 1.29", "00-7225 Butter 2.19"]))

    assert [item.description for item in items] == ["Bananas", "Butter"]


def test_extract_items_preserves_line_numbers() -> None:
    items = _extract_items([(3, "Apple 1.00"), (7, "Pear 2.00")])

    assert [item.line_number for item in items] == [3, 7]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("14,70", Decimal("14.70")),
        ("14.70", Decimal("14.70")),
        ("1.470,00", Decimal("1470.00")),
        ("1,470.00", Decimal("1470.00")),
        ("1 470,00", Decimal("1470.00")),
        ("", None),
    ],
)
def test_parse_amount(raw: str, expected: Decimal | None) -> None:
    assert parse_amount(raw) == expected


def test_split_quantity_unit_leaves_plain_descriptions_alone() -> None:
    assert split_quantity_unit("Lemons") == ("Lemons", Decimal("1"), "pcs")


def test_clean_description_collapses_whitespace_and_symbols() -> None:
    assert clean_description("  ** Bio   Vollmilch ##  ") == "Bio Vollmilch"
