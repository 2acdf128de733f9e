from __future__ import annotations

import json

import httpx
import pytest

from app.config import settings
from app.core.providers.base import EmbeddingProviderError
from app.core.providers.gemini_provider import GeminiProvider


def _provider(handler) -> GeminiProvider:
    return GeminiProvider(transport=httpx.MockTransport(handler))


async def test_embed_batch_sends_batch_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(
            200, json={"embeddings": [{"values": [float(i), 0.5]} for i, _ in enumerate(body["requests"])]}
        )

    vectors = await _provider(handler).embed_batch(["fire door", "window"])

    assert vectors == [[0.0, 0.5], [1.0, 0.5]]
    request = seen[0]
    assert request.url.path.endswith(f"{settings.gemini_embedding_model}:batchEmbedContents")
    body = json.loads(request.content)
    assert body["requests"][1] == {
        "model": settings.gemini_embedding_model,
        "content": {"parts": [{"text": "window"}]},
    }


async def test_empty_batch_makes_no_call() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no request expected")

    assert await _provider(handler).embed_batch([]) == []


async def test_error_status_raises() -> None:
    provider = _provider(lambda request: httpx.Response(429, text="RESOURCE_EXHAUSTED"))
    with pytest.raises(EmbeddingProviderError, match="429"):
        await provider.embed_batch(["a"])


async def test_missing_embeddings_raises() -> None:
    provider = _provider(lambda request: httpx.Response(200, json={}))
    with pytest.raises(EmbeddingProviderError, match="0 embeddings for 2 texts"):
        await provider.embed_batch(["a", "b"])


async def test_malformed_body_raises() -> None:
    provider = _provider(lambda request: httpx.Response(200, json={"embeddings": [{"vals": [1]}]}))
    with pytest.raises(EmbeddingProviderError, match="malformed"):
        await provider.embed_batch(["a"])


async def test_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EmbeddingProviderError, match="request failed"):
        await _provider(handler).embed_batch(["a"])
