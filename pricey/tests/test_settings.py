from pathlib import Path

from pricey.runtime.paths import get_paths
from pricey.runtime.settings import (
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_EMBEDDING_TIMEOUT,
    DEFAULT_EMBEDDING_URL,
    DEFAULT_MIN_STORE_CONFIDENCE,
    load_settings,
)


def test_defaults() -> None:
    settings = load_settings({})

    assert settings.embedding_url == DEFAULT_EMBEDDING_URL
    assert settings.embedding_model == DEFAULT_EMBEDDING_MODEL
    assert settings.embedding_timeout == DEFAULT_EMBEDDING_TIMEOUT
    assert settings.cache_ttl_seconds == DEFAULT_CACHE_TTL_SECONDS
    assert settings.db_path == get_paths().default_database
    assert settings.cache_max_entries == DEFAULT_CACHE_MAX_ENTRIES
    assert settings.min_store_confidence == DEFAULT_MIN_STORE_CONFIDENCE


def test_environment_overrides(tmp_path: Path) -> None:
    settings = load_settings(
        {
            "PRICEY_EMBEDDING_URL": "http://embeddings:11434/",
            "PRICEY_EMBEDDING_MODEL": "mxbai-embed-large",
            "PRICEY_EMBEDDING_TIMEOUT": "2.5",
            "PRICEY_CACHE_TTL_SECONDS": "60",
            "PRICEY_DB_PATH": str(tmp_path / "prices.sqlite3"),
            "PRICEY_CACHE_MAX_ENTRIES": "500",
            "PRICEY_MIN_STORE_CONFIDENCE": "0.9",
        }
    )

    assert settings.embedding_url == "http://embeddings:11434"
    assert settings.embedding_model == "mxbai-embed-large"
    assert settings.embedding_timeout == 2.5
    assert settings.cache_ttl_seconds == 60.0
    assert settings.db_path == tmp_path / "prices.sqlite3"
    assert settings.cache_max_entries == 500
    assert settings.min_store_confidence == 0.9


def test_invalid_numbers_fall_back_to_defaults() -> None:
    settings = load_settings({"PRICEY_EMBEDDING_TIMEOUT": "soon", "PRICEY_CACHE_TTL_SECONDS": "-5"})

    assert settings.embedding_timeout == DEFAULT_EMBEDDING_TIMEOUT
    assert settings.cache_ttl_seconds == DEFAULT_CACHE_TTL_SECONDS


def test_invalid_cache_bound_and_store_confidence_fall_back_to_defaults() -> None:
    settings = load_settings({"PRICEY_CACHE_MAX_ENTRIES": "1.5", "PRICEY_MIN_STORE_CONFIDENCE": "1.2"})

    assert settings.cache_max_entries == DEFAULT_CACHE_MAX_ENTRIES
    assert settings.min_store_confidence == DEFAULT_MIN_STORE_CONFIDENCE


def test_zero_store_confidence_records_every_store() -> None:
    assert load_settings({"PRICEY_MIN_STORE_CONFIDENCE": "0"}).min_store_confidence == 0.0
