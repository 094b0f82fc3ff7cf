"""API route definitions."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, UploadFile, status

from pixelscope.analysis.errors import AnalysisError, AnalysisFailure
from pixelscope.analysis.pipeline import ProcessResult, failure_result, process_image, validate_upload
from pixelscope.api.middleware import verify_api_key
from pixelscope.api.schemas import (
    AnalyzeImageResponse,
    ErrorResponse,
    FormatsResponse,
    HealthResponse,
)

if TYPE_CHECKING:
    from pixelscope.analysis.pool import AnalysisPool
    from pixelscope.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_analysis_pool(request: Request) -> AnalysisPool:
    pool: AnalysisPool = request.app.state.analysis_pool
    return pool


def _to_response(result: ProcessResult) -> AnalyzeImageResponse:
    return AnalyzeImageResponse(
        success=result.ok,
        report=result.text,
        error_type=type(result.error).__name__ if result.error is not None else None,
        content_type=result.report.content.content_type if result.report is not None else None,
    )


@router.post(
    "/analyze-image",
    response_model=AnalyzeImageResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="Analyze an image and describe its content",
)
async def analyze_image(request: Request, file: UploadFile) -> AnalyzeImageResponse:
    """Classify an uploaded image.

    Every analysis outcome is a 200: failures come back as the text-only
    fallback report with ``success`` set to false.
    """
    settings = _get_settings(request)
    pool = _get_analysis_pool(request)
    declared_format = file.content_type or ""

    # Reject by declared metadata before reading the body into memory.
    if file.size is not None:
        try:
            validate_upload(
                declared_format,
                file.size,
                supported_formats=settings.supported_formats,
                max_size=settings.max_file_size,
            )
        except AnalysisError as exc:
            logger.info("Rejected upload %s: %s", file.filename, exc.message)
            return _to_response(failure_result(exc, settings))

    image_bytes = await file.read()
    declared_size = file.size if file.size is not None else len(image_bytes)

    try:
        result = await pool.run(
            partial(process_image, settings=settings),
            image_bytes,
            declared_format,
            declared_size,
        )
    except TimeoutError:
        logger.warning("Image analysis timed out for %s", file.filename)
        result = failure_result(AnalysisFailure("Image analysis timed out"), settings)

    return _to_response(result)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    pool = _get_analysis_pool(request)
    return HealthResponse(
        status="ok",
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )


@router.get(
    "/formats",
    response_model=FormatsResponse,
    summary="List accepted image formats",
)
async def list_formats(request: Request) -> FormatsResponse:
    """Return the accepted MIME types and the upload size limit."""
    settings = _get_settings(request)
    return FormatsResponse(formats=list(settings.supported_formats), max_file_size=settings.max_file_size)
