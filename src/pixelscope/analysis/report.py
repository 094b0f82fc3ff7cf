"""Text report and mermaid diagram rendering.

Pure formatting: everything shown here was already computed by the
analyzers and the classifier.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pixelscope.analysis.types import (
        ColorAnalysis,
        ContentAnalysis,
        EdgeAnalysis,
        ImageDimensions,
        PatternAnalysis,
    )

DIAGRAM_FENCE = "```"
DIAGRAM_LANGUAGE = "mermaid"

_UNSAFE_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9\s()-]")

_FORMAT_DISPLAY_NAMES = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WebP",
    "image/gif": "GIF",
}


def _percent(value: float, digits: int = 1) -> str:
    return f"{value * 100:.{digits}f}%"


def sanitize_label(text: str) -> str:
    """Strip characters that would break a quoted mermaid node label."""
    return _UNSAFE_LABEL_CHARS.sub("", text)


def build_diagram(
    dimensions: ImageDimensions,
    colors: ColorAnalysis,
    edges: EdgeAnalysis,
    patterns: PatternAnalysis,
    content: ContentAnalysis,
) -> str:
    """Render a ``flowchart TD`` mermaid description of the analysis."""
    content_type = sanitize_label(content.content_type)
    layout = "Structured UI" if content.is_ui_screen else "Organic Layout"
    text_density = "Text Heavy" if content.has_text else "Visual Heavy"
    type_class = "error" if content.is_error_screen else "success"

    lines = [
        "flowchart TD",
        "    ImageAnalysis[Image Analysis] --> ContentType[Content Type]",
        "    ImageAnalysis --> VisualElements[Visual Elements]",
        "    ImageAnalysis --> TechDetails[Technical Details]",
        "",
        f'    ContentType --> Type["{content_type}"]',
        "",
        "    VisualElements --> Colors[Colors]",
        "    VisualElements --> Layout[Layout]",
        "    VisualElements --> Components[Components]",
        "",
        f'    Colors --> Brightness["Brightness {_percent(colors.brightness)}"]',
        f'    Colors --> Theme["{content.theme}"]',
        "",
        f'    Layout --> LayoutType["{layout}"]',
        f'    Layout --> TextDensity["{text_density}"]',
        "",
        f'    Components --> EdgeDensity["Edge {_percent(edges.normalized_edges)}"]',
        f'    Components --> PatternDensity["Pattern {_percent(patterns.regularity)}"]',
        "",
        "    TechDetails --> Resolution[Resolution]",
        "    TechDetails --> Composition[Composition]",
        "",
        f'    Resolution --> Size["{dimensions.width}x{dimensions.height}"]',
        f'    Composition --> Dark["Dark {_percent(colors.dark_ratio)}"]',
        f'    Composition --> Light["Light {_percent(colors.light_ratio)}"]',
        "",
        "    classDef default fill:#f4f4f4,stroke:#333,stroke-width:1px",
        "    classDef highlight fill:#e1e1e1,stroke:#666",
        "    classDef error fill:#ffe6e6,stroke:#c66",
        "    classDef success fill:#e6ffe6,stroke:#6c6",
        "",
        "    class ImageAnalysis highlight",
        f"    class Type {type_class}",
        "    class Brightness,Theme,LayoutType,TextDensity,EdgeDensity,PatternDensity,Size,Dark,Light default",
    ]
    return "\n".join(lines)


def build_report(
    dimensions: ImageDimensions,
    colors: ColorAnalysis,
    edges: EdgeAnalysis,
    patterns: PatternAnalysis,
    content: ContentAnalysis,
    diagram: str | None = None,
) -> str:
    """Render the human-readable report with the diagram in a fenced block.

    Args:
        dimensions: Size of the analyzed image.
        colors: Output of the color analyzer.
        edges: Output of the edge analyzer.
        patterns: Output of the pattern analyzer.
        content: Output of the content classifier.
        diagram: Pre-rendered diagram; built from the same inputs if omitted.

    Returns:
        The report text, ending with a ```` ```mermaid ```` block.
    """
    if diagram is None:
        diagram = build_diagram(dimensions, colors, edges, patterns, content)

    total = patterns.total_pixels
    dominant = ", ".join(colors.dominant_colors)

    if content.has_text:
        text_line = "- Text: Significant text content detected"
    else:
        text_line = "- Text: Minimal or no text content"
    if edges.rectangular_shapes > total * 0.01:
        ui_line = "- UI Elements: Multiple interface components detected"
    else:
        ui_line = "- UI Elements: Few or no interface components"
    if patterns.regular_patterns > total * 0.1:
        pattern_line = "- Patterns: Regular geometric patterns present"
    else:
        pattern_line = "- Patterns: Organic or irregular patterns"

    if content.is_ui_screen:
        if edges.rectangular_shapes > total * 0.02:
            components = "Multiple buttons/cards"
        else:
            components = "Minimal interactive elements"
        interface_lines = [
            "- Layout: Structured user interface detected",
            f"- Theme: {content.theme.capitalize()}",
            f"- Components: {components}",
        ]
    else:
        interface_lines = ["- Layout: Not a typical user interface"]

    if content.is_error_screen:
        status_line = "Warning: Potential error indicators detected"
    else:
        status_line = "Status: No error indicators detected"

    lines = [
        "Image Content Analysis:",
        f"- Type: {content.content_type}",
        f"- Dimensions: {dimensions.width}x{dimensions.height}px",
        "",
        "Visual Elements:",
        f"- Dominant Colors: {dominant}",
        f"- Brightness: {_percent(colors.brightness)}",
        f"- Contrast: {_percent(edges.normalized_edges)} edge density",
        "",
        "Content Detection:",
        text_line,
        ui_line,
        pattern_line,
        "",
        "Interface Analysis:",
        *interface_lines,
        "",
        status_line,
        "",
        "Technical Details:",
        f"- Edge Density: {_percent(edges.normalized_edges, 2)}",
        f"- Dark/Light Ratio: {_percent(colors.dark_ratio)}/{_percent(colors.light_ratio)}",
        f"- Pattern Regularity: {_percent(patterns.regularity)}",
        "",
        f"{DIAGRAM_FENCE}{DIAGRAM_LANGUAGE}",
        diagram,
        DIAGRAM_FENCE,
        "",
    ]
    return "\n".join(lines)


def format_failure(reason: str, supported_formats: Sequence[str], max_file_size: int) -> str:
    """Render the fixed-shape message shown when an image cannot be analyzed."""
    formats = ", ".join(_FORMAT_DISPLAY_NAMES.get(f, f.split("/")[-1].upper()) for f in supported_formats)
    lines = [
        "Image Analysis Error:",
        "- Status: Unable to process image",
        f"- Reason: {reason}",
        "- Recommendation: Please ensure the image is valid and try again",
        "- Note: Continuing with text-only analysis",
        f"- Supported Formats: {formats}",
        f"- Maximum Size: {format_size(max_file_size)}",
    ]
    return "\n".join(lines)


def format_size(num_bytes: int) -> str:
    """Format a byte count as whole megabytes when exact, e.g. ``10MB``."""
    mib = num_bytes / (1024 * 1024)
    if mib == int(mib):
        return f"{int(mib)}MB"
    return f"{mib:.1f}MB"
