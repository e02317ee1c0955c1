"""
Core module - Graph store, effects, evaluation and propagation.

This module provides the fundamental building blocks of Canal:
- Graph: Nodes, edges and change notifications
- Effects: Effect specifications and the effect catalog
- Raster: Pixel buffers and their reported dimensions
- Resolver / Evaluator / Scheduler: The dataflow engine
- Settings: Engine configuration
"""

from canal.core.errors import (
    CanalError,
    DecodeError,
    EvaluationError,
    ExportError,
    GraphError,
    IncompleteMergeError,
    IngestError,
    MissingUpstreamError,
    SurfaceError,
)

from canal.core.raster import (
    Dims,
    Raster,
)

from canal.core.arena import RasterArena

from canal.core.effects import (
    BlurEffect,
    ColorCorrectEffect,
    CompositionEffect,
    EffectCatalog,
    EffectCategory,
    EffectKind,
    EffectSpec,
    EffectType,
    ExportEffect,
    FileEffect,
    MergeEffect,
    NullEffect,
    OpacityEffect,
    TextEffect,
    TransformEffect,
    default_catalog,
    input_handles,
    merge_handle,
)

from canal.core.graph import (
    Edge,
    EdgeId,
    GraphEvent,
    GraphEventType,
    GraphStore,
    Node,
    NodeId,
    new_edge_id,
    new_node_id,
)

from canal.core.resolver import (
    DependencyResolver,
    Upstream,
    UpstreamRef,
)

from canal.core.settings import EngineSettings

from canal.core.evaluator import (
    EvaluationContext,
    EvaluationResult,
    Evaluator,
)

from canal.core.scheduler import (
    NodeState,
    PropagationScheduler,
)


__all__ = [
    # errors.py
    "CanalError",
    "DecodeError",
    "EvaluationError",
    "ExportError",
    "GraphError",
    "IncompleteMergeError",
    "IngestError",
    "MissingUpstreamError",
    "SurfaceError",
    # raster.py
    "Dims",
    "Raster",
    # arena.py
    "RasterArena",
    # effects.py
    "BlurEffect",
    "ColorCorrectEffect",
    "CompositionEffect",
    "EffectCatalog",
    "EffectCategory",
    "EffectKind",
    "EffectSpec",
    "EffectType",
    "ExportEffect",
    "FileEffect",
    "MergeEffect",
    "NullEffect",
    "OpacityEffect",
    "TextEffect",
    "TransformEffect",
    "default_catalog",
    "input_handles",
    "merge_handle",
    # graph.py
    "Edge",
    "EdgeId",
    "GraphEvent",
    "GraphEventType",
    "GraphStore",
    "Node",
    "NodeId",
    "new_edge_id",
    "new_node_id",
    # resolver.py
    "DependencyResolver",
    "Upstream",
    "UpstreamRef",
    # settings.py
    "EngineSettings",
    # evaluator.py
    "EvaluationContext",
    "EvaluationResult",
    "Evaluator",
    # scheduler.py
    "NodeState",
    "PropagationScheduler",
]
