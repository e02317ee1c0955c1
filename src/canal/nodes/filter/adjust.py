"""
Adjustment Effects - Blur, Opacity and Color Correct.

All three need a connected input and report the dims of their input
unchanged.
"""

from __future__ import annotations

from canal.core.effects import (
    BlurEffect,
    ColorCorrectEffect,
    EffectCategory,
    EffectKind,
    EffectType,
    OpacityEffect,
)
from canal.core.evaluator import EvaluationContext, EvaluationResult, require_upstream
from canal.core.resolver import Upstream
from canal.filters.blur import blur
from canal.filters.color import apply_opacity, color_correct


async def blur_executor(
    effect: BlurEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    source = require_upstream(upstream)
    quality = effect.quality or context.settings.blur_quality
    raster = await context.run_blocking(
        blur, source.output, float(effect.amount or 0), quality
    )
    return EvaluationResult(raster=raster, dims=source.dims)


async def opacity_executor(
    effect: OpacityEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    source = require_upstream(upstream)
    opacity = 1.0 if effect.opacity is None else effect.opacity
    raster = await context.run_blocking(apply_opacity, source.output, opacity)
    return EvaluationResult(raster=raster, dims=source.dims)


async def color_correct_executor(
    effect: ColorCorrectEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    """Exposure -> brightness -> contrast -> saturation -> hue, per pixel."""
    source = require_upstream(upstream)
    raster = await context.run_blocking(
        color_correct,
        source.output,
        brightness=max(-100.0, min(100.0, effect.brightness or 0)),
        contrast=max(-100.0, min(100.0, effect.contrast or 0)),
        saturation=max(-100.0, min(100.0, effect.saturation or 0)),
        exposure=max(-2.0, min(2.0, effect.exposure or 0)),
        hue=effect.hue or 0,
    )
    return EvaluationResult(raster=raster, dims=source.dims)


BLUR_EFFECT = EffectType(
    kind=EffectKind.BLUR,
    name="Blur",
    description="Apply blur effect",
    category=EffectCategory.FILTER,
    spec_class=BlurEffect,
    executor=blur_executor,
)


OPACITY_EFFECT = EffectType(
    kind=EffectKind.OPACITY,
    name="Opacity",
    description="Adjust image transparency",
    category=EffectCategory.FILTER,
    spec_class=OpacityEffect,
    executor=opacity_executor,
)


COLOR_CORRECT_EFFECT = EffectType(
    kind=EffectKind.COLOR_CORRECT,
    name="Color Correct",
    description="Adjust brightness, contrast, saturation, exposure, and hue",
    category=EffectCategory.FILTER,
    spec_class=ColorCorrectEffect,
    executor=color_correct_executor,
)
