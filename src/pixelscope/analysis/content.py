"""Content classifier: fixed heuristics over the three low-level analyses."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pixelscope.analysis.colors import color_key
from pixelscope.analysis.types import ContentAnalysis

if TYPE_CHECKING:
    from pixelscope.analysis.types import ColorAnalysis, EdgeAnalysis, PatternAnalysis

UI_RECTANGLE_RATIO = 0.01
UI_PATTERN_RATIO = 0.1
TEXT_EDGE_BIAS = 1.5
TEXT_MIN_DENSITY = 0.1
DOCUMENT_MIN_DENSITY = 0.2
SIMPLE_MAX_DENSITY = 0.05
ERROR_MAX_DARK = 0.2
ERROR_MIN_LIGHT = 0.6
THEME_RATIO = 0.7

# Pure red (255, 0, 0) and light pink (255, 192, 192) after quantization.
ERROR_COLORS = frozenset({color_key(256, 0, 0), color_key(256, 192, 192)})

USER_INTERFACE = "User Interface"
DOCUMENT = "Document or Text Content"
SIMPLE_GRAPHIC = "Simple Graphic or Icon"
COMPLEX_IMAGE = "Complex Image or Photo"


def classify_content(
    colors: ColorAnalysis,
    edges: EdgeAnalysis,
    patterns: PatternAnalysis,
) -> ContentAnalysis:
    """Combine color, edge and pattern statistics into content flags.

    The content type is decided top to bottom, first match wins: user
    interface (suffixed by error > dark > light theme), text document, simple
    graphic, complex image.
    """
    total = patterns.total_pixels
    density = edges.normalized_edges

    is_ui_screen = (
        edges.rectangular_shapes > total * UI_RECTANGLE_RATIO and patterns.regular_patterns > total * UI_PATTERN_RATIO
    )
    has_text = edges.horizontal_edges > edges.vertical_edges * TEXT_EDGE_BIAS and density > TEXT_MIN_DENSITY
    is_error_screen = (
        colors.dark_ratio < ERROR_MAX_DARK
        and colors.light_ratio > ERROR_MIN_LIGHT
        and any(color in ERROR_COLORS for color in colors.dominant_colors)
    )
    is_dark_mode = colors.dark_ratio > THEME_RATIO
    is_light_mode = colors.light_ratio > THEME_RATIO

    if is_ui_screen:
        content_type = USER_INTERFACE
        if is_error_screen:
            content_type += " (Error Screen)"
        elif is_dark_mode:
            content_type += " (Dark Theme)"
        elif is_light_mode:
            content_type += " (Light Theme)"
    elif has_text and density > DOCUMENT_MIN_DENSITY:
        content_type = DOCUMENT
    elif density < SIMPLE_MAX_DENSITY:
        content_type = SIMPLE_GRAPHIC
    else:
        content_type = COMPLEX_IMAGE

    return ContentAnalysis(
        is_ui_screen=is_ui_screen,
        has_text=has_text,
        is_error_screen=is_error_screen,
        is_dark_mode=is_dark_mode,
        is_light_mode=is_light_mode,
        content_type=content_type,
    )
