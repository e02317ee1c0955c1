"""
Source Effects - Effects that produce an image without any input.

These are File (decode a user-selected image) and Text (render styled
text onto a transparent surface).
"""

from __future__ import annotations

from canal.core.effects import (
    EffectCatalog,
    EffectCategory,
    EffectKind,
    EffectType,
    FileEffect,
    TextEffect,
)
from canal.core.evaluator import EvaluationContext, EvaluationResult
from canal.core.raster import Dims, Raster
from canal.core.resolver import Upstream
from canal.filters.text import render_text


async def file_executor(
    effect: FileEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    """Decode the referenced image. Output dims are its natural size."""
    if effect.source_ref is None:
        return None

    raster = await context.run_blocking(
        Raster.decode, effect.source_ref, effect.file_name or None
    )
    return EvaluationResult(raster=raster, dims=Dims.of(raster))


async def text_executor(
    effect: TextEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    """Render the text; blank text produces nothing."""
    if not effect.text or not effect.text.strip():
        return None

    raster = await context.run_blocking(
        render_text,
        effect.text,
        effect.font_size or 16,
        effect.color or "#ffffff",
        effect.alignment or "left",
        effect.font_weight or "normal",
        effect.padding or 0,
        family=context.settings.font_family,
        line_height_factor=context.settings.line_height_factor,
    )
    return EvaluationResult(raster=raster, dims=Dims.of(raster))


FILE_EFFECT = EffectType(
    kind=EffectKind.FILE,
    name="File",
    description="Load an image file",
    category=EffectCategory.INPUT,
    spec_class=FileEffect,
    executor=file_executor,
    has_source=False,
)


TEXT_EFFECT = EffectType(
    kind=EffectKind.TEXT,
    name="Text",
    description="Create text with styling",
    category=EffectCategory.INPUT,
    spec_class=TextEffect,
    executor=text_executor,
    has_source=False,
)


def register_input_effects(catalog: EffectCatalog) -> None:
    """Register all input effect types."""
    catalog.register(FILE_EFFECT)
    catalog.register(TEXT_EFFECT)
