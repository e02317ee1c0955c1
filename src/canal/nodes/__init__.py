"""
Nodes package - All built-in effect implementations.

Effects are organized by category:
- input: File, Text
- filter: Blur, Opacity, Color Correct, Transform
- utility: Null, Merge, Composition
- output: Export
"""

from canal.core.effects import EffectCatalog
from canal.nodes.filter import register_filter_effects
from canal.nodes.input import register_input_effects
from canal.nodes.output import register_output_effects
from canal.nodes.utility import register_utility_effects


def register_all_effects(catalog: EffectCatalog) -> None:
    """Register all built-in effect types into `catalog`."""
    register_input_effects(catalog)
    register_filter_effects(catalog)
    register_utility_effects(catalog)
    register_output_effects(catalog)


__all__ = [
    "register_all_effects",
]
