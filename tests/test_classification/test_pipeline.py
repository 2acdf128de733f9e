from __future__ import annotations

import pytest

from app.classification.pipeline import classify_batch
from app.core.providers.base import BaseEmbeddingProvider, EmbeddingProviderError
from app.retrieval.match_backend import BaseMatchBackend, MatchBackendError, MatchPayload
from app.schemas.classify import BackendMatch, QueryIn


class _Provider(BaseEmbeddingProvider):
    name = "fake"

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.calls: list[list[str]] = []

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail_on & set(texts):
            raise EmbeddingProviderError("quota exceeded")
        return [[0.25, 0.5] for _ in texts]


class _Backend(BaseMatchBackend):
    """Matches every request id found in `known`, records each payload it receives."""

    def __init__(self, known: dict[int, BackendMatch] | None = None, error: str | None = None) -> None:
        self.known = known or {}
        self.error = error
        self.payloads: list[MatchPayload] = []

    async def batch_match(self, payload: MatchPayload) -> list[BackendMatch]:
        self.payloads.append(payload)
        if self.error:
            raise MatchBackendError(self.error)
        return [self.known[rid] for rid in payload.request_ids if rid in self.known]


def _queries(*texts: str) -> list[QueryIn]:
    return [QueryIn(query=t, uniclass_type="pr") for t in texts]


async def test_fire_door_example() -> None:
    backend = _Backend({0: BackendMatch(request_id=0, code="C10", title="Doors", similarity=0.873)})
    results = await classify_batch(_queries("fire door", "xyzzy-nonsense"), _Provider(), backend)

    assert [r.model_dump() for r in results] == [
        {"request_id": 0, "match": "C10:Doors:0.87", "confidence": 0.873},
        {"request_id": 1, "match": "No match found:0.00", "confidence": 0},
    ]
    assert len(backend.payloads) == 1
    payload = backend.payloads[0]
    assert payload.request_ids == [0, 1]
    assert payload.uniclass_types == ["PR", "PR"]
    assert payload.depths == [2, 2]
    assert payload.query_embeddings == ["[0.25,0.5]", "[0.25,0.5]"]


async def test_failed_chunk_isolated_and_excluded_from_backend() -> None:
    texts = [f"q{i}" for i in range(5)]
    known = {i: BackendMatch(request_id=i, code=f"C{i}", title="T", similarity=0.5) for i in range(5)}
    provider = _Provider(fail_on={"q2"})
    backend = _Backend(known)

    results = await classify_batch(_queries(*texts), provider, backend, chunk_size=2)

    assert provider.calls == [["q0", "q1"], ["q2", "q3"], ["q4"]]
    assert backend.payloads[0].request_ids == [0, 1, 4]
    assert [r.match for r in results] == [
        "C0:T:0.50",
        "C1:T:0.50",
        "Embedding failed:0.00",
        "Embedding failed:0.00",
        "C4:T:0.50",
    ]


async def test_explicit_ids_and_depths_flow_through() -> None:
    queries = [
        QueryIn(request_id=100, query="wall", uniclass_type="ss", depth=3),
        QueryIn(query="slab", uniclass_type="Ss"),
    ]
    backend = _Backend()
    results = await classify_batch(queries, _Provider(), backend, default_depth=4)

    assert backend.payloads[0].request_ids == [100, 1]
    assert backend.payloads[0].depths == [3, 4]
    assert backend.payloads[0].uniclass_types == ["SS", "SS"]
    assert [r.request_id for r in results] == [100, 1]


async def test_all_embeddings_failed_still_returns_every_query() -> None:
    backend = _Backend()
    results = await classify_batch(_queries("a", "b"), _Provider(fail_on={"a"}), backend)

    assert backend.payloads[0].request_ids == []
    assert [r.match for r in results] == ["Embedding failed:0.00", "Embedding failed:0.00"]


async def test_backend_failure_propagates() -> None:
    backend = _Backend(error="could not connect to server")
    with pytest.raises(MatchBackendError, match="could not connect"):
        await classify_batch(_queries("a"), _Provider(), backend)


async def test_zero_chunk_size_is_rejected_not_defaulted() -> None:
    backend = _Backend()
    with pytest.raises(ValueError, match="chunk size"):
        await classify_batch(_queries("a"), _Provider(), backend, chunk_size=0)
    assert backend.payloads == []
