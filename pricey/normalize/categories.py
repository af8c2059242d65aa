"""Category assignment for new catalog products.

A description is checked against every keyword rule; each rule that hits
produces a scored CategoryMatch and the highest score wins. Keywords may hit
with OCR damage ("CHIC KEN", "YOGHRT") through bigram coverage. Scores rank by:

1. rule priority (later rule files outrank earlier ones, built-ins rank last)
2. exact over fuzzy hits
3. longer keywords, then later positions in the description

Rules live in ``pricey/rules/default_categories.toml`` and an optional
project-level ``config/categories.toml``.
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

CATEGORY_FRUIT = "fruit"
CATEGORY_VEGETABLE = "vegetable"
CATEGORY_DAIRY = "dairy"
CATEGORY_BAKERY = "bakery"
CATEGORY_MEAT = "meat"
CATEGORY_OTHER = "other"

CATEGORIES = (
    CATEGORY_FRUIT,
    CATEGORY_VEGETABLE,
    CATEGORY_DAIRY,
    CATEGORY_BAKERY,
    CATEGORY_MEAT,
    CATEGORY_OTHER,
)

# (max keyword length, required bigram coverage); longer keywords use FUZZY_COVERAGE_LONG
FUZZY_COVERAGE_BY_LENGTH = ((4, 0.75), (6, 0.80))
FUZZY_COVERAGE_LONG = 0.70
# Keywords this short only hit as whole words ("ham" vs "graham")
WHOLE_WORD_MAX_LENGTH = 3

EXACT_HIT_BONUS = 1000
PRIORITY_WEIGHT = 10000
LAYER_PRIORITY_STEP = 100

BUILTIN_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("apple", "banana", "orange", "lemon", "grape", "pear", "berry"), CATEGORY_FRUIT),
    (("tomato", "potato", "onion", "carrot", "cucumber", "lettuce", "salad"), CATEGORY_VEGETABLE),
    (("milk", "cheese", "yogurt", "butter", "cream"), CATEGORY_DAIRY),
    (("bread", "roll", "baguette", "croissant", "cake"), CATEGORY_BAKERY),
    (("chicken", "beef", "pork", "ham", "sausage", "meat"), CATEGORY_MEAT),
)


@dataclass(frozen=True)
class CategoryRule:
    keywords: tuple[str, ...]
    category: str
    priority: int = 0


@dataclass(frozen=True)
class CategoryRuleLayers:
    """Merged rules from built-ins and every loaded rule file."""

    rules: tuple[CategoryRule, ...]
    exact_only_keywords: frozenset[str]


@dataclass(frozen=True)
class KeywordHit:
    position: int
    exact: bool


@dataclass(frozen=True)
class CategoryMatch:
    category: str
    keyword: str
    score: int


def _keywords_from(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return ()
    return tuple(kw for kw in (str(value).strip().casefold() for value in raw) if kw)


def build_category_rule_layers(
    classifier_configs: Sequence[Mapping[str, Any]] | None = None,
) -> CategoryRuleLayers:
    """Merge built-in rules with parsed TOML configs, in increasing priority order.

    Each config may hold ``rules`` (tables with ``category``, ``keywords``,
    optional ``priority`` and ``exact_only``) and a top-level
    ``exact_only_keywords`` list. Malformed rule entries are skipped.
    """
    rules = [CategoryRule(keywords, category) for keywords, category in BUILTIN_RULES]
    exact_only: set[str] = set()

    for layer, config in enumerate(classifier_configs or (), start=1):
        exact_only.update(_keywords_from(config.get("exact_only_keywords", [])))
        for entry in config.get("rules", []):
            if not isinstance(entry, Mapping):
                continue
            keywords = _keywords_from(entry.get("keywords"))
            category = str(entry.get("category") or "").strip().lower()
            if not keywords or not category:
                continue
            priority = int(entry.get("priority", 0)) + layer * LAYER_PRIORITY_STEP
            rules.append(CategoryRule(keywords, category, priority))
            if entry.get("exact_only", False):
                exact_only.update(keywords)

    return CategoryRuleLayers(rules=tuple(rules), exact_only_keywords=frozenset(exact_only))


@lru_cache(maxsize=1)
def _builtin_layers() -> CategoryRuleLayers:
    return build_category_rule_layers()


def _bigrams(text: str) -> set[str]:
    return {text[i : i + 2] for i in range(len(text) - 1)}


def _bigram_coverage(keyword: str, window: str) -> float:
    """Share of the keyword's bigrams that also occur in the window."""
    wanted = _bigrams(keyword)
    if not wanted:
        return 1.0 if keyword in window else 0.0
    return len(wanted & _bigrams(window)) / len(wanted)


def _required_coverage(length: int) -> float:
    for max_length, coverage in FUZZY_COVERAGE_BY_LENGTH:
        if length <= max_length:
            return coverage
    return FUZZY_COVERAGE_LONG


def find_keyword(keyword: str, description: str, fuzzy: bool = True) -> KeywordHit | None:
    """Locate a keyword in a description, tolerating OCR splits and misreads.

    Positions refer to the description with spaces removed, except for short
    keywords which are matched as whole words in the original text.
    """
    text = description.casefold()
    kw = keyword.casefold().strip()

    compact_kw = kw.replace(" ", "")
    if len(compact_kw) <= WHOLE_WORD_MAX_LENGTH:
        found = re.search(r"\b" + re.escape(kw) + r"\b", text)
        return KeywordHit(found.start(), exact=True) if found else None

    compact = text.replace(" ", "")
    position = compact.find(compact_kw)
    if position != -1:
        return KeywordHit(position, exact=True)
    if not fuzzy:
        return None

    # One extra character per window absorbs a single OCR insertion
    width = len(compact_kw) + 1
    best_position, best_coverage = -1, 0.0
    for start in range(len(compact) - len(compact_kw) + 2):
        coverage = _bigram_coverage(compact_kw, compact[start : start + width])
        if coverage > best_coverage:
            best_position, best_coverage = start, coverage

    if best_coverage >= _required_coverage(len(compact_kw)):
        return KeywordHit(best_position, exact=False)
    return None


def _score(rule: CategoryRule, keyword: str, hit: KeywordHit) -> int:
    score = len(keyword.replace(" ", "")) * 10 + hit.position + rule.priority * PRIORITY_WEIGHT
    return score + EXACT_HIT_BONUS if hit.exact else score


def _matches(description: str, layers: CategoryRuleLayers) -> list[CategoryMatch]:
    matches: list[CategoryMatch] = []
    for rule in layers.rules:
        # First hitting keyword represents the rule
        for keyword in rule.keywords:
            hit = find_keyword(keyword, description, fuzzy=keyword not in layers.exact_only_keywords)
            if hit is not None:
                matches.append(CategoryMatch(rule.category, keyword, _score(rule, keyword, hit)))
                break
    matches.sort(key=lambda match: match.score, reverse=True)
    return matches


def categorize_product(
    description: str,
    default: str = CATEGORY_OTHER,
    rule_layers: CategoryRuleLayers | None = None,
) -> str:
    """
    Return the category for a product description.

    Args:
        description: Item description (e.g., "bio vollmilch 3,5%")
        default: Category when no rule matches
        rule_layers: Rules from the runtime loader; built-in rules when omitted

    Returns:
        Category name (e.g., "dairy") or default
    """
    matches = _matches(description, rule_layers or _builtin_layers())
    return matches[0].category if matches else default


def categorize_product_debug(
    description: str,
    rule_layers: CategoryRuleLayers | None = None,
) -> list[CategoryMatch]:
    """Every matching rule for a description, best first."""
    return _matches(description, rule_layers or _builtin_layers())
