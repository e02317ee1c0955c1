"""
Text - Render multi-line text onto a transparent surface.
"""

from __future__ import annotations

import logging
import math
from functools import lru_cache

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFont

from canal.core.raster import Raster

logger = logging.getLogger(__name__)

LINE_HEIGHT_FACTOR = 1.2

_REGULAR_FACES = ("{family}.ttf", "DejaVuSans.ttf", "Arial.ttf", "arial.ttf")
_BOLD_FACES = ("{family}-Bold.ttf", "DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")


@lru_cache(maxsize=64)
def load_font(
    size: int,
    weight: str = "normal",
    family: str = "DejaVuSans",
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """
    Load a TrueType font, falling back to Pillow's bundled default face.
    """
    faces = _BOLD_FACES if weight == "bold" else _REGULAR_FACES
    for face in faces:
        try:
            return ImageFont.truetype(face.format(family=family), size)
        except OSError:
            continue
    logger.debug("No TrueType face for %s/%s, using Pillow default", family, weight)
    return ImageFont.load_default(size=size)


def measure_lines(lines: list[str], font) -> list[float]:
    """Advance width of every line in pixels."""
    return [font.getlength(line) for line in lines]


def render_text(
    text: str,
    font_size: float = 32,
    color: str = "#ffffff",
    alignment: str = "left",
    font_weight: str = "normal",
    padding: float = 0,
    *,
    family: str = "DejaVuSans",
    line_height_factor: float = LINE_HEIGHT_FACTOR,
) -> Raster:
    """
    Render text with per-line alignment on a transparent surface.

    The surface is (widest line + 2*padding) x (lines * line height +
    2*padding), rounded up to whole pixels.

    Raises:
        ValueError: If `color` is not a valid color string
    """
    rgba = ImageColor.getcolor(color, "RGBA")
    font = load_font(max(1, int(round(font_size))), font_weight, family)

    lines = text.split("\n")
    line_height = font_size * line_height_factor
    widths = measure_lines(lines, font)

    width = math.ceil(max(widths) + padding * 2)
    height = math.ceil(len(lines) * line_height + padding * 2)
    surface = Raster.transparent(width, height)

    # Coverage mask first, then color it in, so edges keep the text color
    mask = Image.new("L", (width, height), 0)
    pen = ImageDraw.Draw(mask)
    for index, (line, line_width) in enumerate(zip(lines, widths)):
        if alignment == "center":
            x = (width - line_width) / 2
        elif alignment == "right":
            x = width - line_width - padding
        else:
            x = padding
        y = padding + index * line_height
        pen.text((x, y), line, font=font, fill=255, anchor="la")

    coverage = np.asarray(mask, dtype=np.float32) / 255.0
    pixels = surface.pixels
    pixels[..., 0] = rgba[0] / 255.0
    pixels[..., 1] = rgba[1] / 255.0
    pixels[..., 2] = rgba[2] / 255.0
    pixels[..., 3] = coverage * (rgba[3] / 255.0)
    return surface
