"""
Utility effects - Null, Merge and Composition.
"""

from canal.core.effects import EffectCatalog
from canal.nodes.utility.composition import COMPOSITION_EFFECT
from canal.nodes.utility.merge import MERGE_EFFECT
from canal.nodes.utility.passthrough import NULL_EFFECT


def register_utility_effects(catalog: EffectCatalog) -> None:
    """Register all utility effect types."""
    catalog.register(NULL_EFFECT)
    catalog.register(MERGE_EFFECT)
    catalog.register(COMPOSITION_EFFECT)


__all__ = [
    "COMPOSITION_EFFECT",
    "MERGE_EFFECT",
    "NULL_EFFECT",
    "register_utility_effects",
]
