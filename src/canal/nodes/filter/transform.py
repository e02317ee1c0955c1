"""
Transform Effect - Scale, rotate and translate an image.

The image is drawn on a working surface large enough for the rotated
bounding box plus the translation, but the node reports only the
scaled size of its input to downstream consumers.
"""

from __future__ import annotations

from canal.core.effects import (
    EffectCategory,
    EffectKind,
    EffectType,
    TransformEffect,
)
from canal.core.evaluator import EvaluationContext, EvaluationResult, require_upstream
from canal.core.resolver import Upstream
from canal.filters.geometry import transform


async def transform_executor(
    effect: TransformEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    source = require_upstream(upstream)
    raster, dims = await context.run_blocking(
        transform,
        source.output,
        scale=effect.scale or 1.0,
        rotation=effect.rotation or 0.0,
        translate_x=effect.translate_x or 0.0,
        translate_y=effect.translate_y or 0.0,
    )
    return EvaluationResult(raster=raster, dims=dims)


TRANSFORM_EFFECT = EffectType(
    kind=EffectKind.TRANSFORM,
    name="Transform",
    description="Scale, rotate, and translate image",
    category=EffectCategory.FILTER,
    spec_class=TransformEffect,
    executor=transform_executor,
)
