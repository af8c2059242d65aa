"""Centralized path management for pricey.

This module provides a single source of truth for rule and data file
locations, so loaders do not compute paths on their own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _get_project_root() -> Path:
    """Determine the project root directory."""
    override = os.environ.get("PRICEY_PROJECT_ROOT", "").strip()
    if override:
        return Path(override)
    # pricey/runtime/paths.py -> pricey/runtime -> pricey -> project root
    return Path(__file__).parent.parent.parent


@dataclass
class ProjectPaths:
    """Container for all project-related paths.

    All paths are computed relative to the project root, ensuring consistency
    across all modules regardless of the current working directory.
    """

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    # --- Source code paths ---
    @property
    def src(self) -> Path:
        """Pricey package directory."""
        return Path(__file__).resolve().parents[1]

    @property
    def default_rules(self) -> Path:
        """Rule files shipped with the package."""
        return self.src / "rules"

    @property
    def default_store_rules(self) -> Path:
        return self.default_rules / "default_stores.toml"

    @property
    def default_brand_rules(self) -> Path:
        return self.default_rules / "default_brands.toml"

    @property
    def default_category_rules(self) -> Path:
        return self.default_rules / "default_categories.toml"

    # --- Configuration paths ---
    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def store_rules(self) -> Path:
        """Project-level known stores TOML file."""
        return self.config / "stores.toml"

    @property
    def brand_rules(self) -> Path:
        """Project-level known brands TOML file."""
        return self.config / "brands.toml"

    @property
    def category_rules(self) -> Path:
        """Project-level keyword -> category TOML file."""
        return self.config / "categories.toml"

    # --- Data paths ---
    @property
    def var(self) -> Path:
        """Runtime data directory (var/)."""
        return self.root / "var"

    @property
    def default_database(self) -> Path:
        """SQLite file used when PRICEY_DB_PATH is not set."""
        return self.var / "pricey.sqlite3"


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance.

    Returns:
        The global ProjectPaths instance.
    """
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Drop the cached ProjectPaths (used when PRICEY_PROJECT_ROOT changes)."""
    global _paths
    _paths = None
