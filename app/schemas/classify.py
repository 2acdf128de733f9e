from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field


class QueryIn(BaseModel):
    request_id: int | None = None  # defaults to the query's position in the batch
    query: str
    uniclass_type: str
    depth: int | None = None  # defaults to settings.default_depth


class BatchClassifyRequest(BaseModel):
    queries: list[QueryIn] = Field(min_length=1)


@dataclass
class ResolvedQuery:
    """A QueryIn with every optional field resolved to a concrete value."""

    request_id: int
    text: str
    uniclass_type: str  # upper-cased
    depth: int


@dataclass
class BackendMatch:
    request_id: int
    code: str
    title: str
    similarity: float


class ResultRecord(BaseModel):
    request_id: int
    match: str  # "<code>:<title>:<similarity .2f>" or a placeholder
    confidence: float


class BatchClassifyResponse(BaseModel):
    success: bool = True
    processed: int
    results: list[ResultRecord]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: str | None = None
