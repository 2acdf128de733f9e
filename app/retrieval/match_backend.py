from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.schemas.classify import BackendMatch

logger = logging.getLogger(__name__)


class MatchBackendError(RuntimeError):
    """The similarity-search call failed; no query in the batch can be resolved."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


@dataclass
class MatchPayload:
    """Four parallel arrays; index k in each refers to the same query."""

    request_ids: list[int] = field(default_factory=list)
    query_embeddings: list[str] = field(default_factory=list)  # JSON-encoded vectors
    uniclass_types: list[str] = field(default_factory=list)
    depths: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.request_ids)

    def as_rpc_params(self) -> dict[str, list]:
        return {
            "p_request_ids": self.request_ids,
            "p_query_embeddings": self.query_embeddings,
            "p_uniclass_type_filters": self.uniclass_types,
            "p_depths": self.depths,
        }


class BaseMatchBackend(ABC):
    @abstractmethod
    async def batch_match(self, payload: MatchPayload) -> list[BackendMatch]:
        """Run one batched similarity search. Raises MatchBackendError on failure."""
        ...


def _to_matches(rows: Iterable[Mapping[str, Any]]) -> list[BackendMatch]:
    try:
        matches = [
            BackendMatch(
                request_id=int(row["request_id"]),
                code=str(row["code"]),
                title=str(row["title"]),
                similarity=float(row["similarity"]),
            )
            for row in rows
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise MatchBackendError(f"Malformed match row: {exc!r}") from exc

    # NaN comes back from cosine distance against a zero vector
    bad = [m.request_id for m in matches if not math.isfinite(m.similarity)]
    if bad:
        raise MatchBackendError(f"Non-finite similarity for request ids {bad}")
    return matches


class PostgresMatchBackend(BaseMatchBackend):
    """Calls the batch match SQL function directly over asyncpg."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], function_name: str) -> None:
        self._session_maker = session_maker
        # function_name is validated as an identifier in Settings
        self._sql = text(
            f"""
            SELECT request_id, code, title, similarity
            FROM {function_name}(
                CAST(:p_request_ids AS integer[]),
                CAST(:p_query_embeddings AS text[]),
                CAST(:p_uniclass_type_filters AS text[]),
                CAST(:p_depths AS integer[])
            )
            """
        )

    async def batch_match(self, payload: MatchPayload) -> list[BackendMatch]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(self._sql, payload.as_rpc_params())
                rows = result.mappings().all()
        except (SQLAlchemyError, OSError) as exc:
            raise MatchBackendError(str(exc)) from exc

        return _to_matches(rows)


class SupabaseRpcBackend(BaseMatchBackend):
    """Calls the same SQL function through Supabase's PostgREST `/rpc` endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        function_name: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/rest/v1/rpc/{function_name}" if base_url else ""
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._transport = transport

    async def batch_match(self, payload: MatchPayload) -> list[BackendMatch]:
        if not self._url:
            raise MatchBackendError("supabase_url is not configured")
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._url, headers=self._headers, json=payload.as_rpc_params()
                )
        except httpx.HTTPError as exc:
            raise MatchBackendError(f"Supabase request failed: {exc!r}") from exc

        if response.is_error:
            try:
                message = response.json().get("message") or response.text
            except (ValueError, AttributeError):
                message = response.text
            raise MatchBackendError(f"{response.status_code}: {message}")

        try:
            rows = response.json()
        except ValueError as exc:
            raise MatchBackendError("Supabase returned a non-JSON body") from exc
        if not isinstance(rows, list):
            raise MatchBackendError("Supabase returned a non-list body")
        return _to_matches(rows)
