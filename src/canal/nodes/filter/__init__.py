"""
Filter effects - Blur, Opacity, Color Correct and Transform.
"""

from canal.core.effects import EffectCatalog
from canal.nodes.filter.adjust import BLUR_EFFECT, COLOR_CORRECT_EFFECT, OPACITY_EFFECT
from canal.nodes.filter.transform import TRANSFORM_EFFECT


def register_filter_effects(catalog: EffectCatalog) -> None:
    """Register all filter effect types."""
    catalog.register(BLUR_EFFECT)
    catalog.register(OPACITY_EFFECT)
    catalog.register(COLOR_CORRECT_EFFECT)
    catalog.register(TRANSFORM_EFFECT)


__all__ = [
    "BLUR_EFFECT",
    "COLOR_CORRECT_EFFECT",
    "OPACITY_EFFECT",
    "TRANSFORM_EFFECT",
    "register_filter_effects",
]
