"""Recoverable failures of the image analysis pipeline."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for every failure the pipeline reports as text."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnsupportedFormat(AnalysisError):
    """The declared format is not one of the supported image types."""


class SizeExceeded(AnalysisError):
    """The upload is larger than the configured maximum."""


class DecodeFailure(AnalysisError):
    """The bytes could not be decoded into a non-empty pixel buffer."""


class AnalysisFailure(AnalysisError):
    """An unexpected fault inside the analysis stages."""
