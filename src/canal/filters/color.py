"""
Color - Per-pixel opacity and color correction.

All math is vectorized over the whole buffer with numpy. Alpha is
never touched by color correction.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from canal.core.raster import Raster

# Luma weights (Rec. 601)
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114

# Contrast beyond +-0.99 would divide by ~0
CONTRAST_LIMIT = 0.99
MAX_CONTRAST_FACTOR = 100.0
MIN_CONTRAST_FACTOR = 0.01

# Hue is left alone for (nearly) gray pixels
HUE_MIN_DELTA = 0.001


def apply_opacity(raster: Raster, opacity: float) -> Raster:
    """Scale the alpha channel by `opacity` (clamped to [0, 1])."""
    opacity = min(1.0, max(0.0, float(opacity)))
    pixels = raster.pixels.copy()
    if opacity != 1.0:
        pixels[..., 3] *= opacity
    return Raster(pixels=pixels, source_name=raster.source_name)


def contrast_factor(contrast: float) -> float:
    """
    Multiplier for a contrast setting in [-1, 1].

    Settings at or beyond +-0.99 saturate to the extreme factors.
    """
    if abs(contrast) < CONTRAST_LIMIT:
        return (1.0 + contrast) / (1.0 - contrast)
    if contrast >= CONTRAST_LIMIT:
        return MAX_CONTRAST_FACTOR
    return MIN_CONTRAST_FACTOR


def shift_hue(rgb: NDArray[np.float32], degrees: float) -> NDArray[np.float32]:
    """
    Rotate the hue of unit-range RGB values.

    Uses the max/min/delta hue representation: the hue angle moves,
    chroma (delta) and the min channel are kept.
    """
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    cmax = rgb.max(axis=-1)
    cmin = rgb.min(axis=-1)
    delta = cmax - cmin
    colored = delta > HUE_MIN_DELTA
    safe_delta = np.where(colored, delta, 1.0)

    hue = np.where(
        cmax == r,
        np.fmod((g - b) / safe_delta, 6.0),
        np.where(cmax == g, (b - r) / safe_delta + 2.0, (r - g) / safe_delta + 4.0),
    ) * 60.0
    hue = np.fmod(hue + degrees, 360.0)
    hue = np.where(hue < 0, hue + 360.0, hue)

    c = delta
    x = c * (1.0 - np.abs(np.fmod(hue / 60.0, 2.0) - 1.0))
    zero = np.zeros_like(c)
    sector = np.clip((hue // 60.0).astype(np.int64), 0, 5)

    # (r, g, b) per 60 degree sector
    table_r = np.stack([c, x, zero, zero, x, c])
    table_g = np.stack([x, c, c, x, zero, zero])
    table_b = np.stack([zero, zero, x, c, c, x])
    pick = sector[np.newaxis, ...]
    shifted = np.stack([
        np.take_along_axis(table_r, pick, axis=0)[0],
        np.take_along_axis(table_g, pick, axis=0)[0],
        np.take_along_axis(table_b, pick, axis=0)[0],
    ], axis=-1) + cmin[..., np.newaxis]

    return np.where(colored[..., np.newaxis], shifted, rgb).astype(np.float32)


def color_correct(
    raster: Raster,
    brightness: float = 0.0,
    contrast: float = 0.0,
    saturation: float = 0.0,
    exposure: float = 0.0,
    hue: float = 0.0,
) -> Raster:
    """
    Apply exposure, brightness, contrast, saturation and hue in that order.

    Args:
        brightness, contrast, saturation: -100 .. 100
        exposure: stops, -2 .. 2
        hue: degrees, 0 .. 360
    """
    pixels = raster.pixels.copy()
    rgb = pixels[..., :3].astype(np.float32)

    # Exposure happens in channel range and is clamped there
    rgb = np.clip(rgb * np.float32(2.0 ** exposure), 0.0, 1.0)

    rgb = rgb + np.float32(brightness / 100.0)

    factor = np.float32(contrast_factor(contrast / 100.0))
    rgb = (rgb - 0.5) * factor + 0.5

    gray = (
        LUMA_R * rgb[..., 0:1] + LUMA_G * rgb[..., 1:2] + LUMA_B * rgb[..., 2:3]
    ).astype(np.float32)
    rgb = gray + (rgb - gray) * np.float32(1.0 + saturation / 100.0)

    if hue != 0:
        rgb = shift_hue(rgb, float(hue))

    pixels[..., :3] = np.clip(rgb, 0.0, 1.0)
    return Raster(pixels=pixels, source_name=raster.source_name)
