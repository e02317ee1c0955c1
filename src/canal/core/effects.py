"""
Effect System - Effect specifications and the catalog of effect types.

This module defines:
- EffectKind: Tag of every supported effect
- One frozen dataclass per effect (the EffectSpec union)
- EffectType: Catalog entry (display info, defaults, handles, executor)
- EffectCatalog: The set of effect types an engine can evaluate
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Literal, Protocol, TypeAlias

from canal.core.errors import GraphError

if TYPE_CHECKING:
    from canal.core.evaluator import EvaluationContext, EvaluationResult
    from canal.core.resolver import Upstream


MERGE_MIN_INPUTS = 2
MERGE_MAX_INPUTS = 10

# The single input handle of ordinary nodes has no name
DEFAULT_HANDLE: str | None = None


class EffectKind(Enum):
    """Tag of an effect (one per EffectSpec variant)."""
    FILE = "file"
    TEXT = "text"
    NULL = "null"
    BLUR = "blur"
    OPACITY = "opacity"
    COLOR_CORRECT = "color_correct"
    TRANSFORM = "transform"
    MERGE = "merge"
    COMPOSITION = "composition"
    EXPORT = "export"


class EffectCategory(Enum):
    """Categories for organizing effects in a palette."""
    INPUT = "input"
    FILTER = "filter"
    UTILITY = "utility"
    OUTPUT = "output"


@dataclass(frozen=True)
class FileEffect:
    kind: ClassVar[EffectKind] = EffectKind.FILE
    file_name: str = ""
    source_ref: Any = None


@dataclass(frozen=True)
class TextEffect:
    kind: ClassVar[EffectKind] = EffectKind.TEXT
    text: str = "Text"
    font_size: float = 32
    color: str = "#ffffff"
    alignment: Literal["left", "center", "right"] = "left"
    font_weight: Literal["normal", "bold"] = "normal"
    padding: float = 10


@dataclass(frozen=True)
class NullEffect:
    kind: ClassVar[EffectKind] = EffectKind.NULL


@dataclass(frozen=True)
class BlurEffect:
    kind: ClassVar[EffectKind] = EffectKind.BLUR
    amount: float = 10
    quality: Literal["low", "high"] = "high"


@dataclass(frozen=True)
class OpacityEffect:
    kind: ClassVar[EffectKind] = EffectKind.OPACITY
    opacity: float = 1.0


@dataclass(frozen=True)
class ColorCorrectEffect:
    kind: ClassVar[EffectKind] = EffectKind.COLOR_CORRECT
    brightness: float = 0   # -100 .. 100
    contrast: float = 0     # -100 .. 100
    saturation: float = 0   # -100 .. 100
    exposure: float = 0     # -2 .. 2 stops
    hue: float = 0          # 0 .. 360 degrees


@dataclass(frozen=True)
class TransformEffect:
    kind: ClassVar[EffectKind] = EffectKind.TRANSFORM
    scale: float = 1.0
    rotation: float = 0.0  # degrees
    translate_x: float = 0.0
    translate_y: float = 0.0


@dataclass(frozen=True)
class MergeEffect:
    kind: ClassVar[EffectKind] = EffectKind.MERGE
    input_count: int = MERGE_MIN_INPUTS

    @property
    def handle_count(self) -> int:
        return max(MERGE_MIN_INPUTS, min(MERGE_MAX_INPUTS, int(self.input_count)))


@dataclass(frozen=True)
class CompositionEffect:
    kind: ClassVar[EffectKind] = EffectKind.COMPOSITION
    width: int = 1920
    height: int = 1080
    fit_mode: Literal["cover", "contain", "fill", "none"] = "contain"


@dataclass(frozen=True)
class ExportEffect:
    kind: ClassVar[EffectKind] = EffectKind.EXPORT
    format: Literal["png", "jpeg", "webp"] = "png"
    quality: float = 0.92
    file_name: str = ""


EffectSpec: TypeAlias = (
    FileEffect
    | TextEffect
    | NullEffect
    | BlurEffect
    | OpacityEffect
    | ColorCorrectEffect
    | TransformEffect
    | MergeEffect
    | CompositionEffect
    | ExportEffect
)


def merge_handle(index: int) -> str:
    """Name of the i-th merge input handle."""
    return f"input-{index}"


def input_handles(effect: EffectSpec) -> list[str | None]:
    """
    Input handles exposed by a node with this effect.

    Merge exposes input-0..input-{n-1}; File and Text take no input;
    everything else has one unnamed handle.
    """
    if isinstance(effect, MergeEffect):
        return [merge_handle(i) for i in range(effect.handle_count)]
    if isinstance(effect, (FileEffect, TextEffect)):
        return []
    return [DEFAULT_HANDLE]


def normalize_handle(handle: str | None) -> str | None:
    """Map the "input" alias onto the unnamed single handle."""
    if handle in (None, "", "input"):
        return DEFAULT_HANDLE
    return handle


def with_changes(effect: EffectSpec, **changes: Any) -> EffectSpec:
    """
    Return a copy of an effect with some fields replaced.

    Raises:
        GraphError: If a field does not exist on this effect
    """
    names = {f.name for f in dataclasses.fields(effect)}
    unknown = set(changes) - names
    if unknown:
        raise GraphError(
            f"{effect.kind.value} effect has no field(s): {', '.join(sorted(unknown))}"
        )
    return dataclasses.replace(effect, **changes)


class EffectExecutor(Protocol):
    """Protocol for effect execution functions."""

    async def __call__(
        self,
        effect: Any,
        upstream: Upstream,
        context: EvaluationContext,
    ) -> EvaluationResult | None:
        """
        Evaluate the effect.

        Args:
            effect: The node's EffectSpec
            upstream: Resolved upstream reference(s)
            context: Evaluation context (settings, executor access)

        Returns:
            The new output, or None when the effect has nothing to show.
        """
        ...


@dataclass
class EffectType:
    """
    Catalog entry for one effect kind.

    Nodes carry an EffectSpec; the catalog knows how to create the
    default spec, how to present it and which function evaluates it.
    """
    kind: EffectKind
    name: str  # Display name, e.g. "Color Correct"
    category: EffectCategory
    spec_class: type
    description: str = ""
    executor: EffectExecutor | None = None
    has_source: bool = True  # Accepts an incoming connection
    has_target: bool = True  # Offers its output to other nodes
    defaults: dict[str, Any] = field(default_factory=dict)

    def create_default(self) -> EffectSpec:
        """Create the spec a freshly added node starts with."""
        return self.spec_class(**self.defaults)


class EffectCatalog:
    """
    The effect types available to a graph.

    A catalog is an ordinary object handed to the store and the
    evaluator; build the built-in one with default_catalog().
    """

    def __init__(self) -> None:
        self._types: dict[EffectKind, EffectType] = {}

    def register(self, effect_type: EffectType) -> None:
        """Register an effect type (replacing any previous one)."""
        self._types[effect_type.kind] = effect_type

    def get(self, kind: EffectKind) -> EffectType | None:
        return self._types.get(kind)

    def get_all(self) -> list[EffectType]:
        return list(self._types.values())

    def list_by_category(self, category: EffectCategory) -> list[EffectType]:
        return [t for t in self._types.values() if t.category == category]

    def search(self, query: str) -> list[EffectType]:
        """Search effect types by name, kind or description."""
        query = query.strip().lower()
        if not query:
            return self.get_all()
        return [
            t for t in self._types.values()
            if query in t.name.lower()
            or query in t.kind.value
            or query in t.description.lower()
        ]

    def create_default(self, kind: EffectKind) -> EffectSpec:
        effect_type = self._types.get(kind)
        if effect_type is None:
            raise GraphError(f"Unknown effect kind: {kind}")
        return effect_type.create_default()

    def executor_for(self, kind: EffectKind) -> EffectExecutor | None:
        effect_type = self._types.get(kind)
        return effect_type.executor if effect_type else None

    def missing_kinds(self) -> list[EffectKind]:
        """Kinds without a registered executor."""
        return [
            kind for kind in EffectKind
            if kind not in self._types or self._types[kind].executor is None
        ]

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, kind: EffectKind) -> bool:
        return kind in self._types


def default_catalog() -> EffectCatalog:
    """
    Build a catalog holding all built-in effect types.

    Raises:
        RuntimeError: If some EffectKind ends up without an executor
    """
    from canal.nodes import register_all_effects

    catalog = EffectCatalog()
    register_all_effects(catalog)

    missing = catalog.missing_kinds()
    if missing:
        raise RuntimeError(
            "No executor for effect kind(s): " + ", ".join(k.value for k in missing)
        )
    return catalog
