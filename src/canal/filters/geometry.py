"""
Geometry - Affine transform, fit-to-size and layering of rasters.
"""

from __future__ import annotations

import math

import numpy as np
from PIL import Image

from canal.core.errors import SurfaceError
from canal.core.raster import Dims, Raster
from canal.filters.compositing import draw, premultiply, unpremultiply

FIT_MODES = ("cover", "contain", "fill", "none")


def transform_bounds(
    width: float,
    height: float,
    scale: float,
    rotation: float,
    translate_x: float,
    translate_y: float,
) -> tuple[Dims, tuple[int, int]]:
    """
    Compute the reported size and the working surface of a transform.

    Returns:
        (scaled dims, (surface width, surface height)). The surface holds
        the rotated bounding box plus room for the translation on every
        side; only the scaled size is reported downstream.
    """
    scaled_w = width * scale
    scaled_h = height * scale
    rad = math.radians(rotation)
    cos = abs(math.cos(rad))
    sin = abs(math.sin(rad))

    bounding_w = scaled_w * cos + scaled_h * sin
    bounding_h = scaled_w * sin + scaled_h * cos
    padding = max(abs(translate_x), abs(translate_y), 0)

    surface = (
        math.ceil(bounding_w + padding * 2),
        math.ceil(bounding_h + padding * 2),
    )
    return Dims(scaled_w, scaled_h), surface


def transform(
    raster: Raster,
    scale: float = 1.0,
    rotation: float = 0.0,
    translate_x: float = 0.0,
    translate_y: float = 0.0,
) -> tuple[Raster, Dims]:
    """
    Scale, rotate and translate a raster about its center.

    Drawing order matches a 2D canvas: move to the surface center,
    rotate, scale, translate, then draw the image centered at the origin.

    Returns:
        (working-surface raster, reported scaled dims)
    """
    scale = scale or 1.0
    w, h = raster.size
    dims, (surf_w, surf_h) = transform_bounds(
        w, h, scale, rotation, translate_x, translate_y
    )
    if surf_w <= 0 or surf_h <= 0:
        raise SurfaceError(f"Transform produced an empty surface {surf_w}x{surf_h}")

    # Inverse mapping: surface pixel -> source pixel
    rad = math.radians(rotation)
    cos, sin = math.cos(rad), math.sin(rad)
    cx, cy = surf_w / 2.0, surf_h / 2.0
    coeffs = (
        cos / scale,
        sin / scale,
        -(cx * cos + cy * sin) / scale - translate_x + w / 2.0,
        -sin / scale,
        cos / scale,
        (cx * sin - cy * cos) / scale - translate_y + h / 2.0,
    )

    pre = premultiply(raster.pixels)
    channels = [
        np.asarray(
            Image.fromarray(np.ascontiguousarray(pre[..., c])).transform(
                (surf_w, surf_h),
                Image.Transform.AFFINE,
                coeffs,
                resample=Image.Resampling.BILINEAR,
                fillcolor=0.0,
            ),
            dtype=np.float32,
        )
        for c in range(4)
    ]
    pixels = unpremultiply(np.stack(channels, axis=-1))
    return Raster(pixels=pixels, source_name=raster.source_name), dims


def fit(raster: Raster, width: int, height: int, fit_mode: str = "contain") -> Raster:
    """
    Map a raster into a transparent surface of exactly width x height.

    - fill: stretch to the surface (may distort)
    - none: native size at the origin (may crop or leave a margin)
    - contain: largest uniform scale that fits, centered (letterbox)
    - cover: smallest uniform scale that covers, centered (may crop)
    """
    if fit_mode not in FIT_MODES:
        raise ValueError(f"Unknown fit mode: {fit_mode}")

    surface = Raster.transparent(width, height)
    src_w, src_h = raster.size

    if fit_mode == "fill":
        draw_w, draw_h, x, y = width, height, 0.0, 0.0
    elif fit_mode == "none":
        draw_w, draw_h, x, y = src_w, src_h, 0.0, 0.0
    else:
        scale_x = width / src_w
        scale_y = height / src_h
        if fit_mode == "cover":
            scale = max(scale_x, scale_y)
        else:
            scale = min(scale_x, scale_y)
        draw_w = src_w * scale
        draw_h = src_h * scale
        x = (width - draw_w) / 2.0
        y = (height - draw_h) / 2.0

    draw(surface.pixels, raster, x, y, draw_w, draw_h)
    return Raster(pixels=surface.pixels, source_name=raster.source_name)


def layer(base: Raster, base_dims: Dims, overlays: list[Raster]) -> Raster:
    """
    Stack rasters on a surface sized by the base layer's dims.

    The base is stretched to the surface; every overlay is drawn at its
    own pixel size from the top-left corner, later overlays on top.
    """
    width, height = base_dims.pixel_size
    surface = Raster.transparent(width, height)

    draw(surface.pixels, base, 0, 0, width, height)
    for overlay in overlays:
        draw(surface.pixels, overlay, 0, 0, overlay.width, overlay.height)

    return surface
