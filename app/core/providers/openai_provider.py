from __future__ import annotations

import logging
import time

from openai import AsyncOpenAI, OpenAIError

from app.config import settings
from app.core.providers.base import BaseEmbeddingProvider, EmbeddingProviderError, check_vector_count

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseEmbeddingProvider):
    name = "openai"

    def __init__(self, client: AsyncOpenAI | None = None) -> None:
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        # Built on first use so a missing key fails the sub-batch, not the request
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key or None,
                timeout=settings.embedding_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        start = time.monotonic()
        try:
            response = await self._get_client().embeddings.create(
                model=settings.openai_embedding_model,
                input=texts,
                dimensions=settings.openai_embedding_dimensions,
            )
        except OpenAIError as exc:
            raise EmbeddingProviderError(f"OpenAI API error: {exc}") from exc
        latency_ms = int((time.monotonic() - start) * 1000)
        usage = response.usage
        logger.info(
            "OpenAI embed_batch",
            extra={
                "model": settings.openai_embedding_model,
                "batch_size": len(texts),
                "prompt_tokens": usage.prompt_tokens if usage else None,
                "latency_ms": latency_ms,
            },
        )

        vectors = [item.embedding for item in sorted(response.data, key=lambda d: d.index)]
        check_vector_count(self.name, texts, vectors)
        return vectors
