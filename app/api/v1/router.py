from __future__ import annotations

from fastapi import APIRouter

from app.api.v1 import classify

router = APIRouter()
router.include_router(classify.router, prefix="/classify", tags=["classify"])
