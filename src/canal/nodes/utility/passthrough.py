"""
Null Effect - Passes its input through untouched.
"""

from __future__ import annotations

from canal.core.effects import EffectCategory, EffectKind, EffectType, NullEffect
from canal.core.evaluator import EvaluationContext, EvaluationResult, require_upstream
from canal.core.resolver import Upstream


async def null_executor(
    effect: NullEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    # Same raster object: nothing is copied
    source = require_upstream(upstream)
    return EvaluationResult(raster=source.output, dims=source.dims)


NULL_EFFECT = EffectType(
    kind=EffectKind.NULL,
    name="Null",
    description="Pass through node",
    category=EffectCategory.UTILITY,
    spec_class=NullEffect,
    executor=null_executor,
)
