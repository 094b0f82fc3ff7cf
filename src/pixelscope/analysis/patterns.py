"""Pattern analyzer: local color uniformity."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from pixelscope.analysis.types import PatternAnalysis

if TYPE_CHECKING:
    from pixelscope.analysis.types import PixelBuffer

CHANNEL_TOLERANCE = 20
NEIGHBORHOOD = 3
# The block starts 3 pixels up and left of the pixel it is compared with;
# it is not centered on it.
OFFSET = 3


def analyze_patterns(buffer: PixelBuffer) -> PatternAnalysis:
    """Count pixels that match every pixel of their offset 3x3 block.

    For each pixel at (x, y) with x >= 3 and y >= 3 the block whose top-left
    corner is (x - 3, y - 3) is checked: every R, G and B value in it must be
    within 20 of the pixel's own channel.
    """
    height, width = buffer.height, buffer.width
    total_pixels = buffer.total_pixels
    if width <= OFFSET or height <= OFFSET:
        return PatternAnalysis(regular_patterns=0, total_pixels=total_pixels)

    rgb = buffer.pixels[:, :, :3].astype(np.int16)
    current = rgb[OFFSET:, OFFSET:]
    rows, cols = height - OFFSET, width - OFFSET

    regular = np.ones((rows, cols), dtype=bool)
    for dy in range(NEIGHBORHOOD):
        for dx in range(NEIGHBORHOOD):
            neighbor = rgb[dy : dy + rows, dx : dx + cols]
            regular &= (np.abs(neighbor - current) <= CHANNEL_TOLERANCE).all(axis=2)

    return PatternAnalysis(
        regular_patterns=int(np.count_nonzero(regular)),
        total_pixels=total_pixels,
    )
