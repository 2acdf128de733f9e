from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.classification.pipeline import classify_batch
from app.core.providers.base import BaseEmbeddingProvider
from app.dependencies import get_match_backend, get_provider
from app.retrieval.match_backend import BaseMatchBackend, MatchBackendError
from app.schemas.classify import BatchClassifyRequest, BatchClassifyResponse, ErrorResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/batch",
    response_model=BatchClassifyResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def classify(
    body: BatchClassifyRequest,
    provider: BaseEmbeddingProvider = Depends(get_provider),
    backend: BaseMatchBackend = Depends(get_match_backend),
) -> BatchClassifyResponse | JSONResponse:
    """Classify a batch of free-text queries against the Uniclass tables.

    Results are returned in request order, one per query.
    """
    try:
        results = await classify_batch(body.queries, provider, backend)
    except MatchBackendError as exc:
        logger.error("classify.backend_failed", extra={"error": exc.detail})
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Database processing failed", details=exc.detail).model_dump(
                exclude_none=True
            ),
        )
    except Exception:
        logger.exception("classify.unexpected_error")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error").model_dump(exclude_none=True),
        )

    return BatchClassifyResponse(processed=len(results), results=results)
