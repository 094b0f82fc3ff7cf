"""Value records passed between the analysis stages.

Every record is frozen: each stage produces one, hands it downstream, and
nothing mutates it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

CHANNELS = 4


@dataclass(frozen=True)
class ImageDimensions:
    """Width and height of a decoded image, in pixels."""

    width: int
    height: int

    @property
    def total_pixels(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class PixelBuffer:
    """Read-only RGBA pixels in row-major order.

    ``pixels`` has shape ``(height, width, 4)`` and dtype ``uint8``. The array
    is flagged non-writeable on construction so analyzers can share it freely.
    """

    pixels: NDArray[np.uint8]

    def __post_init__(self) -> None:
        pixels = self.pixels
        if pixels.dtype != np.uint8:
            raise ValueError(f"Pixel buffer must be uint8, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise ValueError(f"Pixel buffer must have shape (height, width, 4), got {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("Pixel buffer must have non-zero width and height")
        if pixels.flags.writeable:
            frozen = pixels.copy()
            frozen.flags.writeable = False
            object.__setattr__(self, "pixels", frozen)

    @classmethod
    def from_rgba(cls, raw: bytes, width: int, height: int) -> PixelBuffer:
        """Build a buffer from flat RGBA bytes (``width * height * 4`` long)."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid dimensions {width}x{height}")
        expected = width * height * CHANNELS
        if len(raw) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height} RGBA, got {len(raw)}")
        array = np.frombuffer(raw, dtype=np.uint8).reshape(height, width, CHANNELS)
        return cls(array)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    @property
    def dimensions(self) -> ImageDimensions:
        return ImageDimensions(width=self.width, height=self.height)

    @property
    def data(self) -> NDArray[np.uint8]:
        """Flat RGBA view, ``width * height * 4`` values long."""
        return self.pixels.reshape(-1)


@dataclass(frozen=True)
class ColorAnalysis:
    """Dominant color buckets and brightness ratios."""

    dominant_colors: tuple[str, ...]
    dark_ratio: float
    light_ratio: float
    brightness: float


@dataclass(frozen=True)
class EdgeAnalysis:
    """Brightness-threshold crossings between neighboring pixels."""

    horizontal_edges: int
    vertical_edges: int
    normalized_edges: float
    rectangular_shapes: int


@dataclass(frozen=True)
class PatternAnalysis:
    """Count of pixels whose offset 3x3 neighborhood matches their color."""

    regular_patterns: int
    total_pixels: int

    @property
    def regularity(self) -> float:
        return self.regular_patterns / self.total_pixels


@dataclass(frozen=True)
class ContentAnalysis:
    """Heuristic content flags and the final content-type label."""

    is_ui_screen: bool
    has_text: bool
    is_error_screen: bool
    is_dark_mode: bool
    is_light_mode: bool
    content_type: str

    @property
    def theme(self) -> str:
        # Dark wins when both flags are set.
        if self.is_dark_mode:
            return "Dark Theme"
        if self.is_light_mode:
            return "Light Theme"
        return "Mixed Theme"


@dataclass(frozen=True)
class ImageReport:
    """Everything a successful pipeline run produced."""

    dimensions: ImageDimensions
    colors: ColorAnalysis
    edges: EdgeAnalysis
    patterns: PatternAnalysis
    content: ContentAnalysis
    diagram: str
    text: str
