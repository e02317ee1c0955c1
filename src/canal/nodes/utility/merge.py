"""
Merge Effect - Layer several inputs into one image.

Input 0 is the base layer: it sets the size of the result and is
stretched to fill it. Inputs 1..n-1 are drawn on top at their own
pixel size from the top-left corner, in handle order.
"""

from __future__ import annotations

import logging

from canal.core.effects import EffectCategory, EffectKind, EffectType, MergeEffect
from canal.core.errors import IncompleteMergeError, MissingUpstreamError
from canal.core.evaluator import EvaluationContext, EvaluationResult
from canal.core.resolver import Upstream, UpstreamRef, connected_refs
from canal.filters.geometry import layer

logger = logging.getLogger(__name__)


async def merge_executor(
    effect: MergeEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    """
    Combine all merge inputs.

    A merge with only input-0 connected behaves like a pass-through.
    Otherwise every input must be connected and have an output.
    """
    if isinstance(upstream, UpstreamRef):
        slots: list[UpstreamRef | None] = [upstream]
    else:
        slots = list(upstream or [])

    connected = connected_refs(slots)
    if not connected:
        raise MissingUpstreamError("No input connected")

    base = slots[0] if slots else None
    if len(connected) == 1 and base is not None:
        if not base.ready:
            raise MissingUpstreamError(f"Input {base.source_node_id} has no output yet")
        return EvaluationResult(raster=base.output, dims=base.dims)

    missing = [i for i, ref in enumerate(slots) if ref is None or not ref.ready]
    if missing:
        raise IncompleteMergeError(missing)

    overlays = [ref.output for ref in slots[1:]]
    logger.debug("Merging %d layer(s) onto %s", len(overlays), base.dims)
    raster = await context.run_blocking(layer, base.output, base.dims, overlays)
    return EvaluationResult(raster=raster, dims=base.dims)


MERGE_EFFECT = EffectType(
    kind=EffectKind.MERGE,
    name="Merge",
    description="Merge multiple images",
    category=EffectCategory.UTILITY,
    spec_class=MergeEffect,
    executor=merge_executor,
)
