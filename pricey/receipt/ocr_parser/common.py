"""Shared constants and helpers for OCR receipt parsing."""

import re
from decimal import Decimal, InvalidOperation

from pricey.domain.receipt import DEFAULT_UNIT
from pricey.util.units import UNIT_PATTERN, canonical_unit

# Store names are conventionally printed in the header
STORE_SCAN_LINES = 10
# Totals are conventionally printed in the footer
TOTAL_SCAN_LINES = 10

STORE_CONFIDENCE_KNOWN = 0.9
STORE_CONFIDENCE_FALLBACK = 0.5

CURRENCY_MARKERS = r"(?:[$€£]|EUR|USD|CHF|GBP)"

# Amount with comma or dot decimals and optional thousands separators:
# 2.50, 2,50, 1.234,56, 1,234.56, 1 234,56
AMOUNT = r"\d{1,3}(?:[.,\s']\d{3})+[.,]\d{2}|\d+[.,]\d{2}"

# Trailing price at end of line, e.g. "€2.50", "2,50 €", "$ 3.99 A", "1.00-", "-1.00"
TRAILING_PRICE = re.compile(
    r"(?:(?<=\s)|^)"
    r"(?P<sign>-)?\s*"
    r"(?P<cur1>" + CURRENCY_MARKERS + r")?\s*"
    r"(?P<sign2>-)?\s*"
    r"(?P<amount>" + AMOUNT + r")"
    r"(?P<trailing_minus>-)?\s*"
    r"(?P<cur2>" + CURRENCY_MARKERS + r")?"
    # Single tax-class marker printed after the price ("A", "B", "H", "*")
    r"(?:\s*(?:[A-Za-z]|\*))?"
    r"\s*$",
    re.IGNORECASE,
)

# Any amount following a keyword, used for totals
ANY_AMOUNT = re.compile(
    r"(?P<sign>-)?\s*" + CURRENCY_MARKERS + r"?\s*(?P<amount>" + AMOUNT + r")",
    re.IGNORECASE,
)

# Lines that are header/footer noise rather than purchased items (multi-language)
NOISE_TOKENS = (
    # totals / sums
    r"total",
    r"sub\s*total",
    r"subtotal",
    r"grand\s*total",
    r"summe",
    r"zwischensumme",
    r"gesamt",
    r"gesamtbetrag",
    r"zu\s+zahlen",
    r"amount\s+due",
    r"balance(?:\s+due)?",
    r"totale",
    # tax
    r"tax",
    r"vat",
    r"mwst",
    r"mehrwertsteuer",
    r"ust",
    r"hst",
    r"gst",
    r"pst",
    r"steuer",
    # payment
    r"cash",
    r"bar\s*bezahlt",
    r"bargeld",
    r"card",
    r"karte",
    r"kartenzahlung",
    r"bankomat",
    r"ec",
    r"visa",
    r"mastercard",
    r"maestro",
    r"amex",
    r"debit",
    r"credit",
    r"payment",
    r"bezahlt",
    r"change",
    r"rückgeld",
    r"rueckgeld",
    r"wechselgeld",
    r"gegeben",
    r"tendered",
    # footer
    r"thank\s*you",
    r"thanks",
    r"danke",
    r"vielen\s+dank",
    r"merci",
    r"grazie",
    r"please\s+come\s+again",
    r"auf\s+wiedersehen",
    # receipt metadata
    r"date",
    r"datum",
    r"time",
    r"uhrzeit",
    r"cashier",
    r"kassa",
    r"kasse",
    r"kassier",
    r"register",
    r"terminal",
    r"transaction",
    r"transaktion",
    r"receipt",
    r"rechnung",
    r"beleg",
    r"bon\s*nr",
    r"approved",
    r"auth",
    r"uid",
    r"atu\d*",
    r"firmenbuch",
)
NOISE_LINE = re.compile(r"(?<!\w)(?:" + "|".join(NOISE_TOKENS) + r")(?!\w)", re.IGNORECASE)

# Total/sum keywords (multi-language), most specific first
TOTAL_KEYWORDS = re.compile(
    r"(?<!\w)(?:grand\s*total|total\s*amount|total|amount\s+due|balance\s+due|"
    r"gesamtbetrag|gesamt|summe|sum|zu\s+zahlen|betrag|totale|montant)(?!\w)",
    re.IGNORECASE,
)
# Lines that mention a total keyword but are not the receipt total
TOTAL_EXCLUDED = re.compile(
    r"sub\s*total|zwischensumme|total\s+(?:discount|savings|saved|items|number)|"
    r"number\s+of\s+items|item\s+count|you\s+saved|ersparnis|rabatt",
    re.IGNORECASE,
)

# Quantity/unit tokens around the description
# "1.5 kg Bananas", "500g Mehl", "2 x Milk", "3 @ Yogurt", "2* Semmel"
LEADING_QUANTITY_UNIT = re.compile(
    r"^(?P<qty>\d+(?:[.,]\d+)?)\s*(?P<unit>" + UNIT_PATTERN + r")(?!\w)\.?\s*",
    re.IGNORECASE,
)
LEADING_MULTIPLIER = re.compile(r"^(?P<qty>\d+(?:[.,]\d+)?)\s*(?P<unit>[x×*@])\s*", re.IGNORECASE)
# "Apple Red 1kg", "Milch 1 l", "Eggs 10 pcs", "Semmel 4x"
TRAILING_QUANTITY_UNIT = re.compile(
    r"(?:(?<=\s)|^)(?P<qty>\d+(?:[.,]\d+)?)\s*(?P<unit>" + UNIT_PATTERN + r")\.?$",
    re.IGNORECASE,
)

# Leading article numbers / SKUs, e.g. "00-7225", "4011800 ", "AB-1234 "
LEADING_CODES = (
    re.compile(r"^\d{6,}\s+"),
    re.compile(r"^\d{2,}-\d+\s+"),
    re.compile(r"^[A-Za-z]{2,}-\d+\s+"),
)


def parse_amount(raw: str) -> Decimal | None:
    """Normalize an amount string with comma or dot decimals to a Decimal.

    Handles '14,70', '14.70', '1.470,00', '1,470.00', "1'470.00" and '1 470,00'.
    The last separator is the decimal separator.
    """
    if raw is None:
        return None
    s = re.sub(r"[\s']", "", str(raw).strip())
    if not s:
        return None
    last_sep = max(s.rfind("."), s.rfind(","))
    if last_sep == -1:
        digits = s
    else:
        integer_part = re.sub(r"[.,]", "", s[:last_sep])
        digits = f"{integer_part}.{s[last_sep + 1:]}"
    try:
        return Decimal(digits)
    except InvalidOperation:
        return None


def parse_quantity(raw: str) -> Decimal | None:
    try:
        value = Decimal(raw.replace(",", "."))
    except InvalidOperation:
        return None
    return value if value > 0 else None


def find_trailing_price(line: str) -> tuple[Decimal, int] | None:
    """Return (price, start index of the price token) for a line ending in a price."""
    match = TRAILING_PRICE.search(line)
    if not match:
        return None
    amount = parse_amount(match.group("amount"))
    if amount is None:
        return None
    if match.group("sign") or match.group("sign2") or match.group("trailing_minus"):
        amount = -amount
    return amount, match.start()


def looks_like_noise(line: str) -> bool:
    """Return True if the line is header/footer/payment text rather than an item."""
    return NOISE_LINE.search(line) is not None


def split_quantity_unit(description: str) -> tuple[str, Decimal, str]:
    """Pull a leading or trailing quantity+unit token out of a description.

    Returns:
        (remaining description, quantity, canonical unit); quantity 1 and the
        default unit when no token is present.
    """
    text = description.strip()
    for pattern in (LEADING_QUANTITY_UNIT, LEADING_MULTIPLIER):
        match = pattern.match(text)
        if match:
            quantity = parse_quantity(match.group("qty"))
            rest = text[match.end() :].strip()
            if quantity is not None and rest:
                return rest, quantity, canonical_unit(match.group("unit"))

    match = TRAILING_QUANTITY_UNIT.search(text)
    if match:
        quantity = parse_quantity(match.group("qty"))
        rest = text[: match.start()].strip()
        if quantity is not None and rest:
            return rest, quantity, canonical_unit(match.group("unit"))

    return text, Decimal("1"), DEFAULT_UNIT


def strip_leading_codes(text: str) -> str:
    """Remove leading SKU/article numbers from an OCR item line."""
    cleaned = text.strip()
    for pattern in LEADING_CODES:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


def clean_description(desc: str) -> str:
    """Strip special characters and collapse whitespace."""
    desc = strip_leading_codes(desc)
    # Keep letters (including umlauts), digits, and a few in-name symbols
    desc = re.sub(r"[^\w\s&'%.,/-]", " ", desc)
    desc = desc.replace("_", " ")
    # Remove leading/trailing special chars and extra spaces
    desc = re.sub(r"^[^\w]+", "", desc)
    desc = re.sub(r"[^\w%)]+$", "", desc)
    desc = re.sub(r"\s+", " ", desc)
    return desc.strip()
