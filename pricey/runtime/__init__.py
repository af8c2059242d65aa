"""Runtime infrastructure for pricey.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Environment settings via load_settings(), Settings
- Rule loading via load_known_stores(), load_known_brands(), load_category_rule_layers()

Usage:
    from pricey.runtime import get_logger, get_paths, load_settings

    logger = get_logger(__name__)
    paths = get_paths()
    print(paths.root, paths.config)
"""

from pricey.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from pricey.runtime.paths import (
    ProjectPaths,
    get_paths,
    reset_paths,
)
from pricey.runtime.settings import Settings, load_settings
from pricey.runtime.brand_rules import load_known_brands
from pricey.runtime.category_rules import load_category_rule_layers
from pricey.runtime.store_rules import load_known_stores

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Rules
    "load_known_stores",
    "load_known_brands",
    "load_category_rule_layers",
    # Settings
    "Settings",
    "load_settings",
    # Paths
    "get_paths",
    "reset_paths",
    "ProjectPaths",
]
