from __future__ import annotations

from functools import lru_cache

from app.config import settings
from app.core.providers.base import BaseEmbeddingProvider
from app.core.providers.gemini_provider import GeminiProvider
from app.core.providers.openai_provider import OpenAIProvider
from app.db.session import AsyncSessionLocal
from app.retrieval.match_backend import BaseMatchBackend, PostgresMatchBackend, SupabaseRpcBackend


@lru_cache
def _build_provider(kind: str) -> BaseEmbeddingProvider:
    if kind == "openai":
        return OpenAIProvider()
    return GeminiProvider()


@lru_cache
def _build_match_backend(
    kind: str, function_name: str, supabase_url: str, supabase_anon_key: str
) -> BaseMatchBackend:
    if kind == "supabase":
        return SupabaseRpcBackend(
            base_url=supabase_url,
            api_key=supabase_anon_key,
            function_name=function_name,
        )
    return PostgresMatchBackend(AsyncSessionLocal, function_name)


def get_provider() -> BaseEmbeddingProvider:
    """Return the embedding provider configured by settings.embedding_provider.

    One instance per provider kind is reused across requests so its HTTP pool is shared.
    """
    return _build_provider(settings.embedding_provider)


def get_match_backend() -> BaseMatchBackend:
    """Return the similarity-search backend configured by settings.match_backend."""
    return _build_match_backend(
        settings.match_backend,
        settings.match_function,
        settings.supabase_url,
        settings.supabase_anon_key,
    )
