"""GET /api/ping: liveness probe that also checks the tenant database."""

from __future__ import annotations

import sqlite3

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from praxischat.config import config
from praxischat.pipeline import ChatPipeline

from .chat import get_pipeline
from .schemas import PingResponse

logger = config.get_logger(__name__)

router = APIRouter()


@router.get("/api/ping", response_model=PingResponse)
def ping(pipeline: ChatPipeline = Depends(get_pipeline)):  # noqa: B008
    """Return the number of configured tenants."""
    try:
        count = pipeline.tenants.count_tenants()
    except sqlite3.Error as e:
        logger.exception("Tenant database unavailable")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": str(e)},
        )
    return PingResponse(ok=True, tenants=count)
