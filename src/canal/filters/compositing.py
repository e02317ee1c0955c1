"""
Compositing - Drawing rasters onto surfaces.

Surfaces are plain (H, W, 4) float32 arrays with straight alpha.
Drawing uses "source over" blending, the same rule a 2D canvas uses.
Resampling is done on premultiplied channels so that transparent
pixels do not bleed their color into the result.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from canal.core.raster import Raster


def premultiply(pixels: NDArray[np.float32]) -> NDArray[np.float32]:
    out = pixels.copy()
    out[..., :3] *= out[..., 3:4]
    return out


def unpremultiply(pixels: NDArray[np.float32]) -> NDArray[np.float32]:
    out = pixels.copy()
    alpha = out[..., 3:4]
    np.divide(out[..., :3], alpha, out=out[..., :3], where=alpha > 0)
    out[..., :3] = np.where(alpha > 0, out[..., :3], 0.0)
    return out.clip(0.0, 1.0)


def resample(pixels: NDArray[np.float32], size: tuple[int, int]) -> NDArray[np.float32]:
    """Resize a straight-alpha buffer to (width, height)."""
    width, height = size
    if pixels.shape[1] == width and pixels.shape[0] == height:
        return pixels

    pre = premultiply(pixels)
    channels = [
        np.asarray(
            Image.fromarray(np.ascontiguousarray(pre[..., c])).resize(
                (width, height), Image.Resampling.BILINEAR
            ),
            dtype=np.float32,
        )
        for c in range(4)
    ]
    return unpremultiply(np.stack(channels, axis=-1))


def composite_over(
    surface: NDArray[np.float32],
    image: NDArray[np.float32],
    x: int,
    y: int,
) -> None:
    """Blend `image` over `surface` in place, top-left corner at (x, y)."""
    surf_h, surf_w = surface.shape[:2]
    img_h, img_w = image.shape[:2]

    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + img_w, surf_w), min(y + img_h, surf_h)
    if x0 >= x1 or y0 >= y1:
        return

    src = image[y0 - y:y1 - y, x0 - x:x1 - x]
    dst = surface[y0:y1, x0:x1]

    src_a = src[..., 3:4]
    dst_a = dst[..., 3:4]
    out_a = src_a + dst_a * (1.0 - src_a)

    weighted = src[..., :3] * src_a + dst[..., :3] * dst_a * (1.0 - src_a)
    out_rgb = np.zeros_like(weighted)
    np.divide(weighted, out_a, out=out_rgb, where=out_a > 0)

    dst[..., :3] = out_rgb
    dst[..., 3:4] = out_a


def draw(
    surface: NDArray[np.float32],
    raster: Raster,
    x: float,
    y: float,
    width: float,
    height: float,
) -> None:
    """
    Draw a raster scaled to (width, height) at (x, y).

    Positions and sizes are rounded to whole pixels.
    """
    draw_w, draw_h = int(round(width)), int(round(height))
    if draw_w <= 0 or draw_h <= 0:
        return
    pixels = resample(raster.pixels, (draw_w, draw_h))
    composite_over(surface, pixels, int(round(x)), int(round(y)))
