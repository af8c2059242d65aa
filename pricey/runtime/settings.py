"""Environment-driven settings for the pricey runtime.

Environment variables:
    PRICEY_EMBEDDING_URL: Base URL of the embedding service. Default: http://localhost:11434
    PRICEY_EMBEDDING_MODEL: Embedding model name. Default: nomic-embed-text
    PRICEY_EMBEDDING_TIMEOUT: Seconds to wait for one embedding call. Default: 10
    PRICEY_CACHE_TTL_SECONDS: Lifetime of cached normalization results. Default: 86400
    PRICEY_DB_PATH: SQLite file for catalog and price history. Default: var/pricey.sqlite3
    PRICEY_CACHE_MAX_ENTRIES: Upper bound on cached normalization results. Default: 10000
    PRICEY_MIN_STORE_CONFIDENCE: Lowest store detection confidence (0-1) whose prices
        are recorded. Default: 0.5, which includes guessed store names
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from pricey.runtime.logging import get_logger
from pricey.runtime.paths import get_paths

logger = get_logger(__name__)

DEFAULT_EMBEDDING_URL = "http://localhost:11434"
DEFAULT_EMBEDDING_MODEL = "nomic-embed-text"
DEFAULT_EMBEDDING_TIMEOUT = 10.0
DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CACHE_MAX_ENTRIES = 10_000
DEFAULT_MIN_STORE_CONFIDENCE = 0.5


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""

    embedding_url: str = DEFAULT_EMBEDDING_URL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_timeout: float = DEFAULT_EMBEDDING_TIMEOUT
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    db_path: Path | None = None
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES
    min_store_confidence: float = DEFAULT_MIN_STORE_CONFIDENCE


def _read_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", key, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r; using %s", key, raw, default)
        return default
    return value


def _read_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", key, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r; using %s", key, raw, default)
        return default
    return value


def _read_fraction(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", key, raw, default)
        return default
    if not 0.0 <= value <= 1.0:
        logger.warning("Ignoring out-of-range %s=%r; using %s", key, raw, default)
        return default
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ.
    """
    env = os.environ if env is None else env

    db_raw = env.get("PRICEY_DB_PATH", "").strip()
    db_path = Path(db_raw).expanduser() if db_raw else get_paths().default_database

    return Settings(
        embedding_url=(env.get("PRICEY_EMBEDDING_URL") or DEFAULT_EMBEDDING_URL).strip().rstrip("/"),
        embedding_model=(env.get("PRICEY_EMBEDDING_MODEL") or DEFAULT_EMBEDDING_MODEL).strip(),
        embedding_timeout=_read_float(env, "PRICEY_EMBEDDING_TIMEOUT", DEFAULT_EMBEDDING_TIMEOUT),
        cache_ttl_seconds=_read_float(env, "PRICEY_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
        db_path=db_path,
        cache_max_entries=_read_int(env, "PRICEY_CACHE_MAX_ENTRIES", DEFAULT_CACHE_MAX_ENTRIES),
        min_store_confidence=_read_fraction(env, "PRICEY_MIN_STORE_CONFIDENCE", DEFAULT_MIN_STORE_CONFIDENCE),
    )
