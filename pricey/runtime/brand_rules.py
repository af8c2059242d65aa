"""Runtime loader for known brand tokens."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pricey.normalize.brands import build_brand_list
from pricey.runtime.paths import get_paths
from pricey.runtime.toml_files import layered_rule_files, load_toml


@lru_cache(maxsize=4)
def load_known_brands(config_paths: tuple[str, ...] | None = None) -> tuple[str, ...]:
    """Load brand tokens from the package defaults and project brands.toml."""
    p = get_paths()
    if config_paths is None:
        files = layered_rule_files(p.default_brand_rules, p.brand_rules)
    else:
        files = [Path(path) for path in config_paths]
    return build_brand_list(tuple(load_toml(path) for path in files))
