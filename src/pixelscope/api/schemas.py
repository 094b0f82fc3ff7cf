"""Pydantic request/response schemas for the PixelScope API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AnalyzeImageResponse(BaseModel):
    """Response for the image analysis endpoint.

    ``report`` is always populated: the full analysis on success, the
    text-only fallback message on failure.
    """

    success: bool
    report: str = Field(description="Analysis report with an embedded mermaid block, or the fallback message")
    error_type: str | None = Field(
        default=None,
        description="Failure category: 'UnsupportedFormat', 'SizeExceeded', 'DecodeFailure' or 'AnalysisFailure'",
    )
    content_type: str | None = Field(default=None, description="Content label when analysis succeeded")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    concurrent_requests: int
    queue_depth: int


class FormatsResponse(BaseModel):
    """Accepted upload formats and size limit."""

    formats: list[str]
    max_file_size: int = Field(description="Maximum upload size in bytes")


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
