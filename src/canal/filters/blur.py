"""
Blur - Gaussian and box blur through Pillow's ImageFilter.

Pillow blurs 8-bit images only, so the raster is premultiplied,
quantized, blurred and converted back.
"""

from __future__ import annotations

import numpy as np
from PIL import Image, ImageFilter

from canal.core.raster import Raster
from canal.filters.compositing import premultiply, unpremultiply


def blur(raster: Raster, amount: float, quality: str = "high") -> Raster:
    """
    Blur a raster with the given radius in pixels.

    `quality` selects the kernel: "high" is a true Gaussian, "low" a
    cheaper box blur. Output size always equals the input size.
    """
    if amount <= 0:
        return raster.copy()

    pre = premultiply(raster.pixels)
    image = Image.fromarray((pre * 255.0 + 0.5).clip(0, 255).astype(np.uint8))

    if quality == "low":
        kernel = ImageFilter.BoxBlur(amount)
    else:
        kernel = ImageFilter.GaussianBlur(radius=amount)

    blurred = np.asarray(image.filter(kernel), dtype=np.float32) / 255.0
    return Raster(pixels=unpremultiply(blurred), source_name=raster.source_name)
