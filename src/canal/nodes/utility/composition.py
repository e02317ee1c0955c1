"""
Composition Effect - Place the input on a canvas of a fixed size.
"""

from __future__ import annotations

from canal.core.effects import CompositionEffect, EffectCategory, EffectKind, EffectType
from canal.core.evaluator import EvaluationContext, EvaluationResult, require_upstream
from canal.core.raster import Dims
from canal.core.resolver import Upstream
from canal.filters.geometry import fit


async def composition_executor(
    effect: CompositionEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    """
    Fit the input into width x height with the chosen fit mode.

    The reported dims are always the canvas size, whatever the input.
    """
    source = require_upstream(upstream)
    width = int(effect.width or 1920)
    height = int(effect.height or 1080)
    fit_mode = effect.fit_mode or "contain"

    raster = await context.run_blocking(fit, source.output, width, height, fit_mode)
    return EvaluationResult(raster=raster, dims=Dims(width, height))


COMPOSITION_EFFECT = EffectType(
    kind=EffectKind.COMPOSITION,
    name="Composition",
    description="Set the output canvas size and fit mode",
    category=EffectCategory.UTILITY,
    spec_class=CompositionEffect,
    executor=composition_executor,
)
