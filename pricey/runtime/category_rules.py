"""Runtime loader for product categorization rules."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pricey.normalize.categories import CategoryRuleLayers, build_category_rule_layers
from pricey.runtime.paths import get_paths
from pricey.runtime.toml_files import layered_rule_files, load_toml


@lru_cache(maxsize=8)
def load_category_rule_layers(classifier_paths: tuple[str, ...] | None = None) -> CategoryRuleLayers:
    """Load category rules from runtime-configured files into pure in-memory layers."""
    p = get_paths()
    if classifier_paths is None:
        classifier_files = layered_rule_files(p.default_category_rules, p.category_rules)
    else:
        classifier_files = [Path(path) for path in classifier_paths]

    classifier_configs = tuple(load_toml(path) for path in classifier_files)
    return build_category_rule_layers(classifier_configs=classifier_configs)
