"""TOML reading shared by the runtime rule loaders."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pricey.runtime.logging import get_logger

logger = get_logger(__name__)


def load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not path.exists():
        logger.debug("Rule file not found: %s", path)
        return {}

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


def layered_rule_files(*candidates: Path) -> list[Path]:
    """De-duplicate candidate rule files by resolved path, keeping order."""
    seen_paths: set[Path] = set()
    files: list[Path] = []
    for candidate in candidates:
        resolved = candidate.resolve()
        if resolved in seen_paths:
            continue
        seen_paths.add(resolved)
        files.append(candidate)
    return files
