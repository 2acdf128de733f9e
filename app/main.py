from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import router as api_router
from app.config import settings
from app.schemas.classify import ErrorResponse


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[type-arg]
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info(
        "Starting Uniclass batch classifier",
        extra={
            "env": settings.app_env,
            "embedding_provider": settings.embedding_provider,
            "match_backend": settings.match_backend,
        },
    )
    yield
    logger.info("Shutting down Uniclass batch classifier")


app = FastAPI(
    title="Uniclass Batch Classifier",
    version="1.0.0",
    description="Embedding-based batch classification of BIM element descriptions",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logging.getLogger(__name__).info(
        "request.invalid", extra={"path": request.url.path, "errors": len(exc.errors())}
    )
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error='Missing or invalid "queries" array in request body'
        ).model_dump(exclude_none=True),
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/api/v1/health", tags=["health"])
async def health() -> dict[str, Any]:
    return {"status": "ok", "env": settings.app_env}
