"""Text embedding backends for semantic product matching."""

from __future__ import annotations

import time
from typing import Any, Protocol

import httpx

from pricey.errors import EmbeddingUnavailable
from pricey.runtime.logging import get_logger

logger = get_logger(__name__)


class EmbeddingBackend(Protocol):
    def embed(self, text: str, timeout: float | None = None) -> list[float]: ...


class OllamaEmbeddingClient:
    """Embedding backend for an Ollama-compatible ``/api/embeddings`` endpoint.

    Args:
        base_url: Service root, e.g. ``http://localhost:11434``
        model: Embedding model name
        timeout: Default per-call timeout in seconds
        dimension: Expected vector length; mismatching vectors are rejected
        client: Optional preconfigured httpx.Client (tests pass one with a MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 10.0,
        dimension: int | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.dimension = dimension
        self._client = client

    def _post(self, payload: dict[str, Any], timeout: float) -> httpx.Response:
        url = f"{self.base_url}/api/embeddings"
        if self._client is not None:
            return self._client.post(url, json=payload, timeout=timeout)
        return httpx.post(url, json=payload, timeout=timeout)

    def embed(self, text: str, timeout: float | None = None) -> list[float]:
        """
        Embed one text.

        Raises:
            EmbeddingUnavailable: on connection errors, timeouts, non-200
                responses or a malformed payload.
        """
        effective_timeout = self.timeout if timeout is None else timeout
        try:
            start_time = time.time()
            response = self._post({"model": self.model, "prompt": text}, effective_timeout)
            logger.debug("Embedding service returned in %.2f seconds", time.time() - start_time)
        except httpx.RequestError as e:
            logger.warning("Failed to reach embedding service: %s", e)
            raise EmbeddingUnavailable(f"Failed to reach embedding service: {e}") from e

        if response.status_code != 200:
            logger.warning("Embedding service error: %s", response.status_code)
            raise EmbeddingUnavailable(f"Embedding service error: {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise EmbeddingUnavailable("Embedding service returned invalid JSON") from e

        vector = body.get("embedding") if isinstance(body, dict) else None
        if not isinstance(vector, list) or not vector:
            raise EmbeddingUnavailable("Embedding service response has no embedding")
        try:
            values = [float(v) for v in vector]
        except (TypeError, ValueError) as e:
            raise EmbeddingUnavailable("Embedding contains non-numeric values") from e

        if self.dimension is not None and len(values) != self.dimension:
            raise EmbeddingUnavailable(f"Expected {self.dimension}-dimensional embedding, got {len(values)}")
        return values
