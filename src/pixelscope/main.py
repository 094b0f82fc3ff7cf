"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pixelscope.analysis.pool import AnalysisPool
from pixelscope.api.routes import router
from pixelscope.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting PixelScope (max_concurrent=%s, max_file_size=%s, formats=%s)",
        settings.max_concurrent,
        settings.max_file_size,
        ",".join(settings.supported_formats),
    )

    analysis_pool = AnalysisPool(settings)
    app.state.analysis_pool = analysis_pool

    logger.info("PixelScope ready")
    yield

    logger.info("Shutting down PixelScope")
    analysis_pool.shutdown()
    logger.info("PixelScope shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="PixelScope",
        description="Deterministic heuristic image-content analysis",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run("pixelscope.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
