"""Color analyzer: quantized color buckets and brightness ratios."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from pixelscope.analysis.types import ColorAnalysis

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from pixelscope.analysis.types import PixelBuffer

ALPHA_CUTOFF = 128
QUANTUM = 32
DARK_THRESHOLD = 85
LIGHT_THRESHOLD = 170
DOMINANT_COLOR_COUNT = 3


def quantize(channels: NDArray[np.integer]) -> NDArray[np.int32]:
    """Round each channel to the nearest multiple of 32, halves rounding up."""
    return (channels.astype(np.int32) + QUANTUM // 2) // QUANTUM * QUANTUM


def color_key(r: int, g: int, b: int) -> str:
    return f"rgb({r},{g},{b})"


def analyze_colors(buffer: PixelBuffer, total_pixels: int) -> ColorAnalysis:
    """Scan every pixel once and summarize its colors.

    Pixels with alpha below 128 are ignored. Ratios and brightness are taken
    over ``total_pixels`` (the full image area), not over the opaque pixels,
    so transparency pulls all three values towards zero.
    """
    if total_pixels <= 0:
        raise ValueError(f"total_pixels must be positive, got {total_pixels}")

    rgba = buffer.data.reshape(-1, 4)
    opaque = rgba[rgba[:, 3] >= ALPHA_CUTOFF, :3].astype(np.int32)

    # Compare channel sums against 3x the thresholds to stay in integers.
    sums = opaque.sum(axis=1)
    dark_pixels = int(np.count_nonzero(sums < DARK_THRESHOLD * 3))
    light_pixels = int(np.count_nonzero(sums > LIGHT_THRESHOLD * 3))
    brightness_sum = int(sums.sum()) / 3

    return ColorAnalysis(
        dominant_colors=_dominant_colors(opaque),
        dark_ratio=dark_pixels / total_pixels,
        light_ratio=light_pixels / total_pixels,
        brightness=brightness_sum / total_pixels / 255,
    )


def _dominant_colors(rgb: NDArray[np.int32]) -> tuple[str, ...]:
    if len(rgb) == 0:
        return ()

    q = quantize(rgb)
    # Quantized channels are 0..256, so base 512 packs a key losslessly.
    codes = (q[:, 0] * 512 + q[:, 1]) * 512 + q[:, 2]
    unique, first_seen, counts = np.unique(codes, return_index=True, return_counts=True)

    # lexsort orders by the last key first: count descending, then first-seen.
    order = np.lexsort((first_seen, -counts))[:DOMINANT_COLOR_COUNT]

    keys = []
    for code in unique[order]:
        code = int(code)
        keys.append(color_key(code // (512 * 512), code // 512 % 512, code % 512))
    return tuple(keys)
