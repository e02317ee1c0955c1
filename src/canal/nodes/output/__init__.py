"""
Output effects - Export.
"""

from canal.core.effects import EffectCatalog
from canal.nodes.output.export import EXPORT_EFFECT, export_filename, export_image


def register_output_effects(catalog: EffectCatalog) -> None:
    """Register all output effect types."""
    catalog.register(EXPORT_EFFECT)


__all__ = ["EXPORT_EFFECT", "export_filename", "export_image", "register_output_effects"]
