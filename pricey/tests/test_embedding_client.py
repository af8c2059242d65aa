"""Tests for the HTTP embedding backend, using httpx.MockTransport."""

import json
from collections.abc import Callable

import httpx
import pytest
from pricey.errors import CollaboratorUnavailable, EmbeddingUnavailable
from pricey.normalize.embedding import OllamaEmbeddingClient


def _client(handler: Callable[[httpx.Request], httpx.Response], dimension: int | None = None) -> OllamaEmbeddingClient:
    return OllamaEmbeddingClient(
        base_url="http://embeddings.test/",
        model="nomic-embed-text",
        timeout=2.0,
        dimension=dimension,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_embed_posts_prompt_and_returns_vector() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"embedding": [0.1, 0.2, 3]})

    vector = _client(handler, dimension=3).embed("apple red")

    assert vector == [0.1, 0.2, 3.0]
    assert seen[0].method == "POST"
    assert seen[0].url == httpx.URL("http://embeddings.test/api/embeddings")
    assert json.loads(seen[0].content) == {"model": "nomic-embed-text", "prompt": "apple red"}


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="model not loaded"),
        httpx.Response(404, json={"error": "not found"}),
        httpx.Response(200, content=b"<html>"),
        httpx.Response(200, json={"embedding": []}),
        httpx.Response(200, json={"vector": [1.0]}),
        httpx.Response(200, json=[1.0, 2.0]),
        httpx.Response(200, json={"embedding": ["a", "b"]}),
    ],
)
def test_embed_rejects_bad_responses(response: httpx.Response) -> None:
    client = _client(lambda request: response)

    with pytest.raises(EmbeddingUnavailable):
        client.embed("apple")


def test_embed_rejects_dimension_mismatch() -> None:
    client = _client(lambda request: httpx.Response(200, json={"embedding": [1.0, 2.0]}), dimension=768)

    with pytest.raises(EmbeddingUnavailable, match="768"):
        client.embed("apple")


@pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
def test_embed_wraps_transport_errors(error: type[httpx.RequestError]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise error("service down", request=request)

    with pytest.raises(CollaboratorUnavailable):
        _client(handler).embed("apple")
