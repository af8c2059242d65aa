"""Known-store lookup used by receipt store detection."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

# Minimal built-in table so detection works without any rule file.
BUILTIN_STORES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Walmart", ("walmart", "wal mart")),
    ("Target", ("target",)),
    ("Costco", ("costco",)),
    ("Kroger", ("kroger",)),
    ("Billa", ("billa",)),
    ("Spar", ("spar",)),
    ("Hofer", ("hofer",)),
    ("Lidl", ("lidl",)),
    ("Aldi", ("aldi",)),
)


def _alias_pattern(alias: str) -> re.Pattern[str]:
    """Compile a word-bounded, case-insensitive pattern for a store alias.

    Spaces inside an alias also match a hyphen or no separator at all,
    so "wal mart" finds "WALMART" and "Wal-Mart".
    """
    parts = [re.escape(part) for part in alias.strip().split()]
    body = r"[\s\-]*".join(parts)
    return re.compile(r"(?<!\w)" + body + r"(?!\w)", re.IGNORECASE)


@dataclass(frozen=True)
class KnownStore:
    """Canonical store name with its receipt-header aliases."""

    name: str
    aliases: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...] = field(default=(), compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.patterns:
            aliases = self.aliases or (self.name,)
            # Longer aliases first so "walmart supercenter" is preferred over "walmart"
            ordered = sorted(aliases, key=len, reverse=True)
            object.__setattr__(self, "patterns", tuple(_alias_pattern(a) for a in ordered))

    def matches(self, line: str) -> bool:
        return any(pattern.search(line) for pattern in self.patterns)


def build_known_stores(store_configs: Sequence[Mapping[str, Any]] | None = None) -> tuple[KnownStore, ...]:
    """Merge built-in stores with TOML configs.

    Later configs extend the alias list of a store with the same name.
    """
    merged: dict[str, list[str]] = {}
    display: dict[str, str] = {}

    def _add(name: str, aliases: Sequence[str]) -> None:
        key = name.strip().lower()
        if not key:
            return
        display.setdefault(key, name.strip())
        bucket = merged.setdefault(key, [])
        for alias in aliases:
            alias = str(alias).strip().lower()
            if alias and alias not in bucket:
                bucket.append(alias)

    for name, aliases in BUILTIN_STORES:
        _add(name, aliases)

    for config in store_configs or ():
        for entry in config.get("stores", []):
            if not isinstance(entry, Mapping):
                continue
            name = str(entry.get("name") or "").strip()
            if not name:
                continue
            raw_aliases = entry.get("aliases") or [name]
            if isinstance(raw_aliases, str):
                raw_aliases = [raw_aliases]
            _add(name, [str(a) for a in raw_aliases])

    return tuple(KnownStore(name=display[key], aliases=tuple(aliases)) for key, aliases in merged.items())


@lru_cache(maxsize=1)
def default_known_stores() -> tuple[KnownStore, ...]:
    """Built-in-only store table (no file I/O)."""
    return build_known_stores()
