"""Decode raw image bytes into an RGBA pixel buffer.

Handles format detection, EXIF orientation, animated images (first frame
only), color mode conversion and the pixel-count limit.
"""

from __future__ import annotations

import io
import logging

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from pixelscope.analysis.errors import DecodeFailure
from pixelscope.analysis.types import PixelBuffer

logger = logging.getLogger(__name__)


def _to_8bit(img: Image.Image) -> Image.Image:
    """Scale 16-bit grayscale down to 8 bits; Pillow would clip it at 255."""
    if img.mode.startswith("I;16") or img.mode == "I":
        samples = np.asarray(img).astype(np.uint32)
        return Image.fromarray((np.clip(samples, 0, 0xFFFF) >> 8).astype(np.uint8))
    return img


def decode_image(image_bytes: bytes, max_pixels: int | None = None) -> PixelBuffer:
    """Decode image bytes into a read-only RGBA ``PixelBuffer``.

    Args:
        image_bytes: Raw file bytes (JPEG, PNG, WebP or GIF).
        max_pixels: Reject images with more pixels than this. ``None`` disables
            the check.

    Returns:
        The decoded pixels.

    Raises:
        DecodeFailure: If the data is empty, unreadable, truncated, too large
            or decodes to a zero-sized image.
    """
    if not image_bytes:
        raise DecodeFailure("Failed to load image: no data")

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            width, height = img.size
            if width <= 0 or height <= 0:
                raise DecodeFailure(f"Failed to load image: invalid dimensions {width}x{height}")
            if max_pixels is not None and width * height > max_pixels:
                raise DecodeFailure(f"Failed to load image: {width}x{height} exceeds the {max_pixels} pixel limit")
            # Multi-frame images (GIF, animated WebP) open positioned on frame 0.
            rgba = _to_8bit(ImageOps.exif_transpose(img)).convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        raise DecodeFailure(f"Failed to load image: {exc}") from exc
    except (OSError, SyntaxError, ValueError) as exc:
        # Truncated or corrupt payloads surface as one of these from the format plugins.
        raise DecodeFailure(f"Failed to load image: {exc}") from exc

    pixels = np.asarray(rgba, dtype=np.uint8)
    logger.debug("Decoded %dx%d image", rgba.width, rgba.height)
    return PixelBuffer(pixels)
