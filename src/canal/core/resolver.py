"""
Dependency Resolver - Turns a node's incoming edges into upstream inputs.

Single-input nodes resolve to at most one UpstreamRef; merge nodes
resolve to one slot per input handle, in handle order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeAlias

from canal.core.effects import MergeEffect, input_handles, merge_handle, normalize_handle
from canal.core.graph import Edge, Node, NodeId
from canal.core.raster import Dims, Raster


@dataclass(frozen=True)
class UpstreamRef:
    """
    The committed output of the node feeding one input handle.

    A ref exists as soon as an edge is connected; `output` and `dims`
    stay None until the upstream node has committed something.
    """
    source_node_id: NodeId
    output: Raster | None
    dims: Dims | None

    @property
    def ready(self) -> bool:
        return self.output is not None and self.dims is not None


# None (unconnected), one ref, or one slot per merge handle
Upstream: TypeAlias = UpstreamRef | list[UpstreamRef | None] | None


class GraphReader(Protocol):
    """The read side of a graph store, as seen by the resolver."""

    def get_node(self, node_id: NodeId) -> Node | None:
        ...

    def edges_targeting(self, node_id: NodeId) -> list[Edge]:
        ...


class DependencyResolver:
    """Resolves upstream references by inspecting edges."""

    def __init__(self, graph: GraphReader):
        self._graph = graph

    def resolve(self, node_id: NodeId) -> Upstream:
        """
        Get the upstream reference(s) of a node.

        Returns:
            A list with one slot per handle for merge nodes, otherwise the
            single UpstreamRef or None when nothing is connected.
        """
        node = self._graph.get_node(node_id)
        if node is None:
            return None

        edges = self._graph.edges_targeting(node_id)

        if isinstance(node.effect, MergeEffect):
            return [
                self._ref_for(self._pick(edges, merge_handle(i)))
                for i in range(node.effect.handle_count)
            ]

        handles = input_handles(node.effect)
        if not handles:
            return None
        return self._ref_for(self._pick(edges, handles[0]))

    @staticmethod
    def _pick(edges: list[Edge], handle: str | None) -> Edge | None:
        """
        The edge feeding `handle`.

        Handles hold one edge; if several slipped in anyway the one with
        the lowest id wins so resolution stays deterministic.
        """
        candidates = [e for e in edges if normalize_handle(e.target_handle) == handle]
        if not candidates:
            return None
        return min(candidates, key=lambda e: str(e.id))

    def _ref_for(self, edge: Edge | None) -> UpstreamRef | None:
        if edge is None:
            return None
        source = self._graph.get_node(edge.source_node_id)
        if source is None:
            return None
        return UpstreamRef(
            source_node_id=source.id,
            output=source.output,
            dims=source.dims,
        )


def connected_refs(upstream: Upstream) -> list[UpstreamRef]:
    """Flatten resolved upstream into the refs that are actually connected."""
    if upstream is None:
        return []
    if isinstance(upstream, UpstreamRef):
        return [upstream]
    return [ref for ref in upstream if ref is not None]
