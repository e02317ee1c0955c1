"""
Export Effect - Marks an image for saving and writes it to disk.

Inside the graph an Export node is a pass-through; export_image()
encodes its committed output on request.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from canal.core.effects import EffectCategory, EffectKind, EffectType, ExportEffect
from canal.core.errors import ExportError
from canal.core.evaluator import EvaluationContext, EvaluationResult, require_upstream
from canal.core.graph import Node
from canal.core.resolver import Upstream
from canal.core.settings import EngineSettings
from canal.filters.codec import encode, extension_for

logger = logging.getLogger(__name__)


async def export_executor(
    effect: ExportEffect,
    upstream: Upstream,
    context: EvaluationContext,
) -> EvaluationResult | None:
    source = require_upstream(upstream)
    return EvaluationResult(raster=source.output, dims=source.dims)


EXPORT_EFFECT = EffectType(
    kind=EffectKind.EXPORT,
    name="Export",
    description="Export the processed image",
    category=EffectCategory.OUTPUT,
    spec_class=ExportEffect,
    executor=export_executor,
)


def export_filename(effect: ExportEffect, now: float | None = None) -> str:
    """
    File name an export is written to.

    Without a file name the current time in milliseconds is used, e.g.
    "export-1700000000000.png". JPEG files get the ".jpg" extension.
    """
    stem = effect.file_name or f"export-{int((now if now is not None else time.time()) * 1000)}"
    return f"{stem}.{extension_for(effect.format or 'png')}"


def export_image(
    node: Node,
    directory: str | Path | None = None,
    settings: EngineSettings | None = None,
    *,
    now: float | None = None,
) -> Path:
    """
    Encode an Export node's committed output and write it to a file.

    Args:
        node: The Export node
        directory: Target directory (default: settings.export_directory,
            then the working directory)
        settings: Engine settings supplying format/quality fallbacks
        now: Timestamp (seconds) used for generated file names

    Returns:
        Path of the written file

    Raises:
        ExportError: If the node is not an Export node, has nothing
            committed, or the image cannot be encoded
    """
    settings = settings or EngineSettings()

    effect = node.effect
    if not isinstance(effect, ExportEffect):
        raise ExportError(f"Node {node.id} is not an export node")
    if node.output is None:
        raise ExportError(f"Node {node.id} has no image to export")

    format = effect.format or settings.default_export_format
    quality = effect.quality if effect.quality is not None else settings.default_export_quality
    effect = ExportEffect(format=format, quality=quality, file_name=effect.file_name)

    try:
        data = encode(node.output, format, quality)
    except (ValueError, OSError) as e:
        raise ExportError(f"Could not encode {format}: {e}") from e

    if directory is None:
        directory = settings.export_directory or Path.cwd()
    output_dir = Path(directory)
    output_dir.mkdir(parents=True, exist_ok=True)

    path = output_dir / export_filename(effect, now)
    path.write_bytes(data)
    logger.info("Exported %s (%d bytes)", path, len(data))
    return path
