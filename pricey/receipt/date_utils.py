"""Date helpers for receipt parsing."""

import re
from datetime import date, timedelta

# A receipt older than this is more likely a misread (or a reprinted one)
MAX_RECEIPT_AGE = timedelta(days=366)
# Allow for time-zone skew between the till and the server
FUTURE_TOLERANCE = timedelta(days=1)

MONTHS = {
    "jan": 1,
    "januar": 1,
    "january": 1,
    "jänner": 1,
    "jaenner": 1,
    "feb": 2,
    "februar": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "mär": 3,
    "märz": 3,
    "maerz": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "mai": 5,
    "jun": 6,
    "june": 6,
    "juni": 6,
    "jul": 7,
    "july": 7,
    "juli": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "okt": 10,
    "oktober": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
    "dez": 12,
    "dezember": 12,
}
_MONTH_NAMES = "|".join(sorted(MONTHS, key=len, reverse=True))

# (pattern, field order) pairs; a field order lists the candidate
# interpretations of the three groups, tried in order.
DATE_PATTERNS: tuple[tuple[re.Pattern[str], tuple[str, ...]], ...] = (
    # 2024-01-15, 2024/01/15, 2024.01.15
    (re.compile(r"(?<!\d)(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})(?!\d)"), ("ymd",)),
    # 15.01.2024, 15.01.24
    (re.compile(r"(?<![\d.])(\d{1,2})\.(\d{1,2})\.(\d{4}|\d{2})(?![\d.])"), ("dmy",)),
    # 01/15/2024 (North America) then 15/01/2024
    (re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})(?!\d)"), ("mdy", "dmy")),
    # 15-01-2024 then 01-15-2024
    (re.compile(r"(?<!\d)(\d{1,2})-(\d{1,2})-(\d{4}|\d{2})(?!\d)"), ("dmy", "mdy")),
    # 15. Jan 2024, 15 January 2024
    (
        re.compile(r"(?<!\d)(\d{1,2})\.?\s*(" + _MONTH_NAMES + r")\.?,?\s+(\d{4})(?!\d)", re.IGNORECASE),
        ("dMy",),
    ),
    # Jan 15, 2024
    (
        re.compile(r"(?<!\w)(" + _MONTH_NAMES + r")\.?\s+(\d{1,2}),?\s+(\d{4})(?!\d)", re.IGNORECASE),
        ("Mdy",),
    ),
)

# Labels that usually sit next to the purchase date
DATE_INDICATORS = (
    re.compile(r"date\s*:", re.IGNORECASE),
    re.compile(r"datum\s*:?", re.IGNORECASE),
    re.compile(r"purchase\s*date", re.IGNORECASE),
    re.compile(r"sale\s*date", re.IGNORECASE),
    re.compile(r"trans(?:action)?\s*date", re.IGNORECASE),
)


def _expand_year(raw: str) -> int:
    year = int(raw)
    return 2000 + year if len(raw) <= 2 else year


def _build(order: str, groups: tuple[str, ...]) -> date | None:
    values: dict[str, int] = {}
    for key, raw in zip(order, groups):
        if key == "y":
            values["y"] = _expand_year(raw)
        elif key == "M":
            month = MONTHS.get(raw.lower())
            if month is None:
                return None
            values["m"] = month
        else:
            values[key] = int(raw)
    try:
        return date(values["y"], values["m"], values["d"])
    except ValueError:
        return None


def find_dates(line: str) -> list[date]:
    """Return every calendar-valid date in the line, in text order.

    Ambiguous numeric dates yield each valid interpretation, preferred first.
    """
    found: list[tuple[int, int, date]] = []
    for pattern, orders in DATE_PATTERNS:
        for match in pattern.finditer(line):
            for rank, order in enumerate(orders):
                parsed = _build(order, match.groups())
                if parsed is not None:
                    found.append((match.start(), rank, parsed))
    found.sort(key=lambda entry: (entry[0], entry[1]))
    return [parsed for _, _, parsed in found]


def is_plausible_receipt_date(value: date, reference_date: date | None = None) -> bool:
    """Return True if the date is not in the future and at most about a year old."""
    reference = reference_date or date.today()
    if value > reference + FUTURE_TOLERANCE:
        return False
    return value >= reference - MAX_RECEIPT_AGE


def has_date_indicator(line: str) -> bool:
    return any(pattern.search(line) for pattern in DATE_INDICATORS)
