"""
Canal - Main Entry Point

Command line front end: render an image through a linear chain of
effects, or list the available effect types.

Usage:
    canal render photo.jpg out.png --effect blur:amount=4 --effect opacity:opacity=0.5
    canal effects [QUERY]
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any

from canal.core.effects import (
    EffectCatalog,
    EffectCategory,
    EffectKind,
    EffectSpec,
    ExportEffect,
    FileEffect,
    MergeEffect,
    default_catalog,
    merge_handle,
)
from canal.core.errors import CanalError
from canal.core.graph import GraphStore
from canal.core.scheduler import PropagationScheduler
from canal.core.settings import EngineSettings
from canal.filters.codec import is_image_file
from canal.nodes.output.export import export_image

logger = logging.getLogger(__name__)

SUFFIX_FORMATS = {"jpg": "jpeg", "jpeg": "jpeg", "png": "png", "webp": "webp"}


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _coerce(default: Any, value: str) -> Any:
    """Convert an option value to the type of the field's default."""
    if isinstance(default, bool):
        return value.lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        number = float(value)
        return int(number) if number.is_integer() else number
    if isinstance(default, float):
        return float(value)
    return value


def parse_effect(text: str, catalog: EffectCatalog) -> EffectSpec:
    """
    Parse "kind:key=value,key=value" into an effect spec.

    Values are converted to the type of the field's default. Only
    effects that take an input can appear in a chain.

    Raises:
        ValueError: On an unknown kind, field or malformed value
    """
    kind_name, _, options = text.partition(":")
    try:
        kind = EffectKind(kind_name.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown effect kind: {kind_name}") from None

    effect_type = catalog.get(kind)
    if effect_type is None or effect_type.category not in (
        EffectCategory.FILTER,
        EffectCategory.UTILITY,
    ):
        raise ValueError(f"{kind.value} cannot be used in a chain")

    effect = effect_type.create_default()
    defaults = {f.name: getattr(effect, f.name) for f in dataclasses.fields(effect)}

    changes: dict[str, Any] = {}
    for option in filter(None, (o.strip() for o in options.split(","))):
        key, sep, value = option.partition("=")
        key = key.strip()
        if not sep:
            raise ValueError(f"Expected key=value, got: {option}")
        if key not in defaults:
            raise ValueError(f"{kind.value} has no option: {key}")
        default = defaults[key]
        changes[key] = _coerce(default, value.strip())

    return dataclasses.replace(effect, **changes)


async def render(
    input_path: Path,
    output_path: Path,
    effects: list[EffectSpec],
    settings: EngineSettings,
    catalog: EffectCatalog | None = None,
    quality: float | None = None,
) -> Path:
    """
    Build File -> effects -> Export, evaluate it and write the result.

    Returns:
        Path of the written file

    Raises:
        ExportError: If the chain produced no image
    """
    catalog = catalog or default_catalog()
    store = GraphStore(catalog)
    scheduler = PropagationScheduler(store, settings=settings)

    suffix = output_path.suffix.lstrip(".").lower()
    export_effect = ExportEffect(
        format=SUFFIX_FORMATS.get(suffix, settings.default_export_format),
        quality=quality if quality is not None else settings.default_export_quality,
        file_name=output_path.stem,
    )

    try:
        previous = store.add_node(
            FileEffect(file_name=input_path.name, source_ref=input_path)
        )
        for effect in effects:
            node = store.add_node(effect)
            handle = merge_handle(0) if isinstance(effect, MergeEffect) else None
            store.connect(previous.id, node.id, handle)
            previous = node

        export_node = store.add_node(export_effect)
        store.connect(previous.id, export_node.id)

        await scheduler.wait_idle()
    finally:
        scheduler.close()

    return export_image(export_node, output_path.parent, settings)


def _cmd_render(args: argparse.Namespace, settings: EngineSettings) -> int:
    input_path = Path(args.input)
    output_path = Path(args.output)

    if not input_path.exists():
        print(f"Error: Input not found: {input_path}", file=sys.stderr)
        return 1
    if not is_image_file(input_path):
        print(f"Error: Not an image file: {input_path}", file=sys.stderr)
        return 1

    catalog = default_catalog()
    try:
        effects = [parse_effect(text, catalog) for text in args.effect]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        path = asyncio.run(
            render(input_path, output_path, effects, settings, catalog, args.quality)
        )
    except CanalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Saved to: {path}")
    return 0


def _cmd_effects(args: argparse.Namespace, settings: EngineSettings) -> int:
    catalog = default_catalog()
    for effect_type in catalog.search(args.query or ""):
        print(f"{effect_type.kind.value:<14} {effect_type.name:<14} {effect_type.description}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="canal", description="Node-based image processing")
    parser.add_argument("--settings", type=Path, help="JSON settings file")
    parser.add_argument("--log-level", help="Logging level (default from settings)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser("render", help="Render an image through effects")
    render_parser.add_argument("input", help="Input image file")
    render_parser.add_argument("output", help="Output file (.png, .jpg or .webp)")
    render_parser.add_argument(
        "--effect",
        action="append",
        default=[],
        help="Effect as kind:key=value,... (repeatable, applied in order)",
    )
    render_parser.add_argument("--quality", type=float, help="Export quality 0..1")
    render_parser.set_defaults(handler=_cmd_render)

    effects_parser = subparsers.add_parser("effects", help="List available effects")
    effects_parser.add_argument("query", nargs="?", help="Filter by name or description")
    effects_parser.set_defaults(handler=_cmd_effects)

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the Canal command line.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = build_parser().parse_args(argv)

    try:
        settings = EngineSettings.load(args.settings) if args.settings else EngineSettings()
    except (OSError, ValueError) as e:
        print(f"Error: Could not load settings: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or settings.log_level)
    return args.handler(args, settings)


if __name__ == "__main__":
    sys.exit(main())
