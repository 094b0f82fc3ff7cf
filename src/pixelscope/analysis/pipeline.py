"""Pipeline orchestrator: validate, decode, analyze, classify, report.

``analyze_image`` raises an ``AnalysisError`` subclass on failure;
``process_image`` wraps it and always returns text, so an image problem never
blocks the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pixelscope.analysis.colors import analyze_colors
from pixelscope.analysis.content import classify_content
from pixelscope.analysis.decoding import decode_image
from pixelscope.analysis.edges import analyze_edges
from pixelscope.analysis.errors import (
    AnalysisError,
    AnalysisFailure,
    DecodeFailure,
    SizeExceeded,
    UnsupportedFormat,
)
from pixelscope.analysis.patterns import analyze_patterns
from pixelscope.analysis.report import build_diagram, build_report, format_failure, format_size
from pixelscope.analysis.types import ImageReport
from pixelscope.config import get_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pixelscope.analysis.types import PixelBuffer
    from pixelscope.config import Settings

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS: tuple[str, ...] = ("image/jpeg", "image/png", "image/webp", "image/gif")
MAX_IMAGE_SIZE: int = 10 * 1024 * 1024


@dataclass(frozen=True)
class ProcessResult:
    """Text handed back to the caller, plus the error when analysis failed."""

    text: str
    error: AnalysisError | None = None
    report: ImageReport | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _normalize_format(declared_format: str) -> str:
    # "image/PNG; charset=binary" -> "image/png"
    return declared_format.split(";", 1)[0].strip().lower()


def validate_upload(
    declared_format: str,
    declared_size: int,
    *,
    supported_formats: Sequence[str] = SUPPORTED_FORMATS,
    max_size: int = MAX_IMAGE_SIZE,
) -> None:
    """Check the declared format and size before any decoding happens.

    Raises:
        UnsupportedFormat: If the format is not in ``supported_formats``.
        SizeExceeded: If ``declared_size`` is above ``max_size``.
        DecodeFailure: If ``declared_size`` is negative.
    """
    supported = [_normalize_format(f) for f in supported_formats]
    if _normalize_format(declared_format or "") not in supported:
        names = ", ".join(f.split("/")[-1] for f in supported)
        raise UnsupportedFormat(f"Unsupported image format. Supported formats: {names}")
    if declared_size < 0:
        raise DecodeFailure("Invalid image size")
    if declared_size > max_size:
        raise SizeExceeded(f"Image size exceeds maximum limit of {format_size(max_size)}")


def run_analysis(buffer: PixelBuffer) -> ImageReport:
    """Run every analysis stage over a decoded buffer.

    Raises:
        AnalysisFailure: If any stage fails; no partial results are returned.
    """
    try:
        dimensions = buffer.dimensions
        colors = analyze_colors(buffer, dimensions.total_pixels)
        edges = analyze_edges(buffer)
        patterns = analyze_patterns(buffer)
        content = classify_content(colors, edges, patterns)
        diagram = build_diagram(dimensions, colors, edges, patterns, content)
        text = build_report(dimensions, colors, edges, patterns, content, diagram)
    except AnalysisError:
        raise
    except Exception as exc:
        raise AnalysisFailure(f"Failed to analyze image: {exc}") from exc

    return ImageReport(
        dimensions=dimensions,
        colors=colors,
        edges=edges,
        patterns=patterns,
        content=content,
        diagram=diagram,
        text=text,
    )


def analyze_image(
    image_bytes: bytes,
    declared_format: str,
    declared_size: int,
    *,
    settings: Settings | None = None,
) -> ImageReport:
    """Validate, decode and analyze one image.

    Args:
        image_bytes: Raw file bytes.
        declared_format: MIME type reported by the caller, e.g. ``image/png``.
        declared_size: Byte length reported by the caller.
        settings: Limits to apply; defaults to the environment configuration.

    Returns:
        The full report for the image.

    Raises:
        AnalysisError: One of its subclasses, describing why the image was rejected.
    """
    if settings is None:
        settings = get_settings()
    validate_upload(
        declared_format,
        declared_size,
        supported_formats=settings.supported_formats,
        max_size=settings.max_file_size,
    )
    # Callers may under-declare; the real payload is held to the same limit.
    if len(image_bytes) > settings.max_file_size:
        raise SizeExceeded(f"Image size exceeds maximum limit of {format_size(settings.max_file_size)}")

    buffer = decode_image(image_bytes, max_pixels=settings.max_image_pixels)
    report = run_analysis(buffer)
    logger.info(
        "Analyzed %dx%d image: %s",
        report.dimensions.width,
        report.dimensions.height,
        report.content.content_type,
    )
    return report


def failure_result(error: AnalysisError, settings: Settings | None = None) -> ProcessResult:
    """Wrap an error in the fixed-shape fallback text."""
    if settings is None:
        settings = get_settings()
    text = format_failure(error.message, settings.supported_formats, settings.max_file_size)
    return ProcessResult(text=text, error=error)


def process_image(
    image_bytes: bytes,
    declared_format: str,
    declared_size: int,
    *,
    settings: Settings | None = None,
) -> ProcessResult:
    """Analyze an image and always return text, never raise.

    On failure the text is the fallback message stating that processing
    continues text-only, and ``error`` holds the cause.
    """
    if settings is None:
        settings = get_settings()
    try:
        report = analyze_image(image_bytes, declared_format, declared_size, settings=settings)
    except (UnsupportedFormat, SizeExceeded) as exc:
        logger.info("Rejected image upload: %s", exc.message)
        return failure_result(exc, settings)
    except DecodeFailure as exc:
        logger.warning("Image decode failed: %s", exc.message)
        return failure_result(exc, settings)
    except AnalysisError as exc:
        logger.exception("Image analysis failed")
        return failure_result(exc, settings)
    except Exception as exc:
        logger.exception("Unexpected error while processing image")
        return failure_result(AnalysisFailure(f"Failed to analyze image: {exc}"), settings)

    return ProcessResult(text=report.text, report=report)
