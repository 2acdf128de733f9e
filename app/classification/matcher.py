from __future__ import annotations

import json
import logging
from collections import Counter

from app.classification.embedder import Embedding
from app.retrieval.match_backend import BaseMatchBackend, MatchPayload
from app.schemas.classify import BackendMatch, QueryIn, ResolvedQuery

logger = logging.getLogger(__name__)


def resolve_queries(queries: list[QueryIn], default_depth: int) -> list[ResolvedQuery]:
    """Fill in positional request ids and default depths; upper-case the type filter."""
    resolved = [
        ResolvedQuery(
            request_id=q.request_id if q.request_id is not None else i,
            text=q.query,
            uniclass_type=q.uniclass_type.upper(),
            depth=q.depth if q.depth is not None else default_depth,
        )
        for i, q in enumerate(queries)
    ]
    duplicates = sorted(rid for rid, n in Counter(r.request_id for r in resolved).items() if n > 1)
    if duplicates:
        logger.warning("matcher.duplicate_request_ids", extra={"request_ids": duplicates})
    return resolved


def encode_embedding(embedding: Embedding) -> str:
    return json.dumps(embedding, separators=(",", ":"))


def build_payload(queries: list[ResolvedQuery], embeddings: list[Embedding | None]) -> MatchPayload:
    """Build the backend arrays from queries whose embedding succeeded."""
    payload = MatchPayload()
    for query, embedding in zip(queries, embeddings, strict=True):
        if embedding is None:
            continue
        payload.request_ids.append(query.request_id)
        payload.query_embeddings.append(encode_embedding(embedding))
        payload.uniclass_types.append(query.uniclass_type)
        payload.depths.append(query.depth)
    return payload


async def request_matches(payload: MatchPayload, backend: BaseMatchBackend) -> list[BackendMatch]:
    """Issue the single batched backend call. MatchBackendError propagates."""
    matches = await backend.batch_match(payload)
    logger.info(
        "matcher.request",
        extra={"sent": len(payload), "returned": len(matches)},
    )
    return matches
