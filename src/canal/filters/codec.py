"""
Codec - Encoding rasters to PNG / JPEG / WebP bytes.

Decoding lives on Raster.decode(); this module covers the other
direction plus the small naming helpers export needs.
"""

from __future__ import annotations

import io
import mimetypes
from pathlib import Path

from PIL import Image

from canal.core.raster import Raster

EXPORT_FORMATS = {
    "png": "PNG",
    "jpeg": "JPEG",
    "webp": "WEBP",
}

DEFAULT_QUALITY = 0.92


def extension_for(format: str) -> str:
    """File extension for an export format (jpeg is written as .jpg)."""
    return "jpg" if format == "jpeg" else format


def encode(raster: Raster, format: str = "png", quality: float | None = None) -> bytes:
    """
    Encode a raster.

    Args:
        raster: Image to encode
        format: "png", "jpeg" or "webp"
        quality: 0..1 for jpeg/webp (ignored for png), default 0.92

    Raises:
        ValueError: If the format is not supported
    """
    pil_format = EXPORT_FORMATS.get(format)
    if pil_format is None:
        raise ValueError(f"Unsupported export format: {format}")

    image = raster.to_pil()
    options: dict[str, object] = {}

    if format != "png":
        q = quality if quality else DEFAULT_QUALITY
        options["quality"] = max(1, min(100, int(round(q * 100))))
    if format == "jpeg":
        # JPEG has no alpha: transparent areas come out black
        background = Image.new("RGBA", image.size, (0, 0, 0, 255))
        image = Image.alpha_composite(background, image).convert("RGB")

    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **options)
    return buffer.getvalue()


def is_image_file(path: str | Path) -> bool:
    """Guess from the file name whether a path holds an image."""
    mime, _ = mimetypes.guess_type(str(path))
    return bool(mime and mime.startswith("image/"))
