"""FastAPI application for the chat widget backend.

Run locally:
  uvicorn praxischat.api:app --reload --port 8000

The pipeline (database handles and OpenAI clients) is built once at startup
unless one was passed to ``create_app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from praxischat.config import config
from praxischat.pipeline import ChatPipeline

from .chat import router as chat_router
from .health import router as health_router

logger = config.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline before the first request."""
    if getattr(app.state, "pipeline", None) is None:
        app.state.pipeline = ChatPipeline.from_config()
    logger.info("PraxisChat backend ready.")
    yield
    logger.info("PraxisChat backend shutting down.")


def create_app(pipeline: ChatPipeline | None = None) -> FastAPI:
    """Create the application, optionally around a prebuilt pipeline."""  # noqa: DOC201
    app = FastAPI(
        title="PraxisChat API",
        description="Retrieval-augmented chat assistant for medical practices.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat_router)
    app.include_router(health_router)

    return app


app = create_app()

__all__ = ["app", "create_app"]
