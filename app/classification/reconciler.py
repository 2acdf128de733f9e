from __future__ import annotations

import logging

from app.classification.embedder import Embedding
from app.schemas.classify import BackendMatch, ResolvedQuery, ResultRecord

logger = logging.getLogger(__name__)

NO_MATCH = "No match found:0.00"
EMBEDDING_FAILED = "Embedding failed:0.00"


def format_match(code: str, title: str, similarity: float) -> str:
    """Encode a match as `<code>:<title>:<similarity to 2 decimals>`.

    This string is part of the public response contract; callers split it on ':'.
    """
    return f"{code}:{title}:{similarity:.2f}"


def index_matches(matches: list[BackendMatch]) -> dict[int, BackendMatch]:
    """Map request_id -> match. A later record for the same id replaces an earlier one."""
    by_id: dict[int, BackendMatch] = {}
    repeated: set[int] = set()
    for match in matches:
        if match.request_id in by_id:
            repeated.add(match.request_id)
        by_id[match.request_id] = match
    if repeated:
        logger.warning(
            "reconciler.duplicate_backend_records",
            extra={"request_ids": sorted(repeated)},
        )
    return by_id


def reconcile(
    queries: list[ResolvedQuery],
    embeddings: list[Embedding | None],
    matches: list[BackendMatch],
) -> list[ResultRecord]:
    """Produce exactly one ResultRecord per query, in input order."""
    by_id = index_matches(matches)
    results: list[ResultRecord] = []
    for query, embedding in zip(queries, embeddings, strict=True):
        # A query that was never sent cannot own a backend record, even if its id collides
        match = by_id.get(query.request_id) if embedding is not None else None
        if match is not None:
            results.append(
                ResultRecord(
                    request_id=query.request_id,
                    match=format_match(match.code, match.title, match.similarity),
                    confidence=match.similarity,
                )
            )
        else:
            results.append(
                ResultRecord(
                    request_id=query.request_id,
                    match=NO_MATCH if embedding is not None else EMBEDDING_FAILED,
                    confidence=0,
                )
            )
    return results
