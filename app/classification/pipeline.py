from __future__ import annotations

import logging

from app.classification.embedder import embed_texts
from app.classification.matcher import build_payload, request_matches, resolve_queries
from app.classification.reconciler import EMBEDDING_FAILED, NO_MATCH, reconcile
from app.config import settings
from app.core.providers.base import BaseEmbeddingProvider
from app.retrieval.match_backend import BaseMatchBackend
from app.schemas.classify import QueryIn, ResultRecord

logger = logging.getLogger(__name__)


async def classify_batch(
    queries: list[QueryIn],
    provider: BaseEmbeddingProvider,
    backend: BaseMatchBackend,
    chunk_size: int | None = None,
    default_depth: int | None = None,
) -> list[ResultRecord]:
    """Embed, match and reconcile a batch of queries.

    Pipeline:
      1. Resolve request ids / depths / type filters
      2. Embed all texts, sub-batches in parallel (failures become None)
      3. One backend call with the successfully embedded queries
      4. Map backend rows back onto every input position

    Raises MatchBackendError if the backend call fails; embedding failures never raise.
    """
    resolved = resolve_queries(
        queries, default_depth if default_depth is not None else settings.default_depth
    )
    embeddings = await embed_texts(
        [q.text for q in resolved],
        provider,
        chunk_size if chunk_size is not None else settings.embedding_chunk_size,
    )
    payload = build_payload(resolved, embeddings)
    matches = await request_matches(payload, backend)
    results = reconcile(resolved, embeddings, matches)

    logger.info(
        "pipeline.classify_batch",
        extra={
            "queries": len(queries),
            "embedded": len(payload),
            "matched": sum(1 for r in results if r.match not in (NO_MATCH, EMBEDDING_FAILED)),
        },
    )
    return results
