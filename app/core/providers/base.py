from __future__ import annotations

from abc import ABC, abstractmethod


class EmbeddingProviderError(RuntimeError):
    """Raised when a provider cannot return one vector per input text."""


class BaseEmbeddingProvider(ABC):
    """Abstract embedding provider.

    Concrete implementations: GeminiProvider (default), OpenAIProvider.
    The active provider is selected from settings.embedding_provider.
    """

    name: str = "base"

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Return one embedding vector per text, in order.

        `texts` must fit in a single provider request (see settings.embedding_chunk_size).
        Raises EmbeddingProviderError on any failure.
        """
        ...


def check_vector_count(provider: str, texts: list[str], vectors: list[list[float]]) -> None:
    if len(vectors) != len(texts):
        raise EmbeddingProviderError(
            f"{provider} returned {len(vectors)} embeddings for {len(texts)} texts"
        )
