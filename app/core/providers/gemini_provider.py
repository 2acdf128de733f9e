from __future__ import annotations

import logging
import time

import httpx

from app.config import settings
from app.core.providers.base import BaseEmbeddingProvider, EmbeddingProviderError, check_vector_count

logger = logging.getLogger(__name__)


class GeminiProvider(BaseEmbeddingProvider):
    """Google Generative Language `batchEmbedContents` over plain HTTPS."""

    name = "gemini"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._model = settings.gemini_embedding_model
        self._url = f"{settings.gemini_base_url.rstrip('/')}/{self._model}:batchEmbedContents"
        self._transport = transport

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        payload = {
            "requests": [
                {"model": self._model, "content": {"parts": [{"text": text}]}}
                for text in texts
            ]
        }
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(
                timeout=settings.embedding_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    self._url,
                    headers={"x-goog-api-key": settings.gemini_api_key},
                    json=payload,
                )
        except httpx.HTTPError as exc:
            raise EmbeddingProviderError(f"Gemini request failed: {exc!r}") from exc

        if response.is_error:
            raise EmbeddingProviderError(
                f"Gemini API error: {response.status_code} {response.text}"
            )

        try:
            data = response.json()
            vectors = [list(item["values"]) for item in data.get("embeddings") or []]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise EmbeddingProviderError("Gemini returned a malformed payload") from exc

        logger.info(
            "Gemini embed_batch",
            extra={
                "model": self._model,
                "batch_size": len(texts),
                "latency_ms": int((time.monotonic() - start) * 1000),
            },
        )
        check_vector_count(self.name, texts, vectors)
        return vectors
