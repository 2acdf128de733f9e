from __future__ import annotations

import asyncio
import logging
import time

from app.classification.chunker import chunk_texts
from app.core.providers.base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)

Embedding = list[float]


async def fetch_chunk(texts: list[str], provider: BaseEmbeddingProvider) -> list[Embedding | None]:
    """Embed one sub-batch. Never raises.

    Any provider failure turns every slot of this sub-batch into None.
    """
    try:
        vectors = list(await provider.embed_batch(texts))
    except Exception as exc:
        logger.error(
            "embedder.fetch_chunk.failed",
            extra={"provider": provider.name, "batch_size": len(texts), "error": str(exc)},
        )
        return [None] * len(texts)

    if len(vectors) != len(texts):
        logger.error(
            "embedder.fetch_chunk.short_response",
            extra={"provider": provider.name, "batch_size": len(texts), "returned": len(vectors)},
        )
        return [None] * len(texts)
    return vectors


async def embed_texts(
    texts: list[str],
    provider: BaseEmbeddingProvider,
    chunk_size: int,
) -> list[Embedding | None]:
    """Return one embedding (or None) per text, aligned with `texts`.

    All sub-batches are sent concurrently; a failed sub-batch only affects its own slots.
    """
    chunks = chunk_texts(texts, chunk_size)
    start = time.monotonic()
    per_chunk = await asyncio.gather(*(fetch_chunk(chunk, provider) for chunk in chunks))
    embeddings = [emb for chunk_result in per_chunk for emb in chunk_result]

    failed = sum(1 for emb in embeddings if emb is None)
    logger.info(
        "embedder.embed_texts",
        extra={
            "provider": provider.name,
            "texts": len(texts),
            "chunks": len(chunks),
            "failed": failed,
            "latency_ms": int((time.monotonic() - start) * 1000),
        },
    )
    return embeddings
