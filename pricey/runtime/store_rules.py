"""Runtime loader for known-store rules."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pricey.receipt.known_stores import KnownStore, build_known_stores
from pricey.runtime.paths import get_paths
from pricey.runtime.toml_files import layered_rule_files, load_toml


@lru_cache(maxsize=4)
def load_known_stores(config_paths: tuple[str, ...] | None = None) -> tuple[KnownStore, ...]:
    """
    Load known stores from the package defaults and project stores.toml.

    Args:
        config_paths: Optional TOML path overrides. If None, uses default project paths.

    Returns:
        Tuple of KnownStore entries, built-ins first, preserving file order.
    """
    p = get_paths()
    if config_paths is None:
        files = layered_rule_files(p.default_store_rules, p.store_rules)
    else:
        files = [Path(path) for path in config_paths]
    return build_known_stores(tuple(load_toml(path) for path in files))
