"""
Errors - Failure taxonomy for graph mutation and effect evaluation.

Evaluation errors never escape the evaluator: they are raised by the
per-effect executors and turned into an empty output at the evaluator
boundary. Graph errors are raised to the caller of a mutation.
"""

from __future__ import annotations


class CanalError(Exception):
    """Base class for all errors raised by the engine."""
    pass


class GraphError(CanalError):
    """Invalid graph mutation (unknown node, bad handle, ...)."""
    pass


class EvaluationError(CanalError):
    """An effect could not produce an output."""
    pass


class DecodeError(EvaluationError):
    """A source image could not be decoded into a raster."""
    pass


class MissingUpstreamError(EvaluationError):
    """The effect needs an upstream output that is not available."""
    pass


class SurfaceError(EvaluationError):
    """A drawing surface could not be created (e.g. zero or negative size)."""
    pass


class IncompleteMergeError(EvaluationError):
    """A merge node is missing one or more of its inputs."""

    def __init__(self, missing: list[int]):
        self.missing = missing
        handles = ", ".join(f"input-{i}" for i in missing)
        super().__init__(f"Merge inputs not ready: {handles}")


class ExportError(CanalError):
    """The committed output of a node could not be exported."""
    pass


class IngestError(CanalError):
    """None of the supplied files could be turned into File nodes."""
    pass
