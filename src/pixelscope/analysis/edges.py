"""Edge analyzer: brightness jumps against the left and top neighbors."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from pixelscope.analysis.types import EdgeAnalysis

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from pixelscope.analysis.types import PixelBuffer

EDGE_THRESHOLD = 50


def channel_sums(buffer: PixelBuffer) -> NDArray[np.int32]:
    """Per-pixel ``r + g + b`` as an ``(height, width)`` array; alpha is ignored."""
    return buffer.pixels[:, :, :3].astype(np.int32).sum(axis=2)


def analyze_edges(buffer: PixelBuffer) -> EdgeAnalysis:
    """Count horizontal, vertical and corner-like brightness edges.

    Every pixel except the first row and column is compared with the pixel
    to its left and the pixel above it. Brightness is the RGB mean; a
    difference strictly above 50 is an edge. A pixel that is an edge in both
    directions also counts as a rectangular shape. The density is normalized
    by the full image area even though the scan covers one row and one
    column less.
    """
    sums = channel_sums(buffer)
    current = sums[1:, 1:]
    # |mean_a - mean_b| > 50  <=>  |sum_a - sum_b| > 150
    horizontal = np.abs(current - sums[1:, :-1]) > EDGE_THRESHOLD * 3
    vertical = np.abs(current - sums[:-1, 1:]) > EDGE_THRESHOLD * 3

    horizontal_edges = int(np.count_nonzero(horizontal))
    vertical_edges = int(np.count_nonzero(vertical))
    rectangular_shapes = int(np.count_nonzero(horizontal & vertical))

    return EdgeAnalysis(
        horizontal_edges=horizontal_edges,
        vertical_edges=vertical_edges,
        normalized_edges=(horizontal_edges + vertical_edges) / buffer.total_pixels,
        rectangular_shapes=rectangular_shapes,
    )
