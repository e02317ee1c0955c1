"""
Filters package - Raster operations used by the effect executors.

Provides blurring, color math, geometry (transform / fit / layering),
text rendering and encoding. Everything here is synchronous and
CPU-bound; executors call it through the evaluation context so the
event loop stays free.
"""

from canal.filters.blur import blur
from canal.filters.codec import encode, extension_for, is_image_file
from canal.filters.color import apply_opacity, color_correct
from canal.filters.geometry import fit, layer, transform, transform_bounds
from canal.filters.text import render_text

__all__ = [
    "apply_opacity",
    "blur",
    "color_correct",
    "encode",
    "extension_for",
    "fit",
    "is_image_file",
    "layer",
    "render_text",
    "transform",
    "transform_bounds",
]
