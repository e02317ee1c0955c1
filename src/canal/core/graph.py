"""
Graph Store - Nodes, edges and change notifications.

This module defines the fundamental building blocks:
- Node: A graph vertex carrying one EffectSpec and its committed output
- Edge: A link from a node's output to another node's input handle
- GraphStore: The complete graph, its mutation entry points and the
  listeners that get told about every change
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, NewType
from uuid import UUID, uuid4

from canal.core.arena import RasterArena
from canal.core.effects import (
    EffectKind,
    EffectSpec,
    TextEffect,
    input_handles,
    normalize_handle,
    with_changes,
)
from canal.core.errors import GraphError
from canal.core.raster import Dims, Raster

if TYPE_CHECKING:
    from canal.core.effects import EffectCatalog

logger = logging.getLogger(__name__)


# Type aliases for clarity
NodeId = NewType("NodeId", UUID)
EdgeId = NewType("EdgeId", UUID)


def new_node_id() -> NodeId:
    """Generate a new unique node ID."""
    return NodeId(uuid4())


def new_edge_id() -> EdgeId:
    """Generate a new unique edge ID."""
    return EdgeId(uuid4())


@dataclass(frozen=True)
class Edge:
    """
    A directed connection between two nodes.

    Connects the output of `source_node_id` to the input handle
    `target_handle` of `target_node_id`. Single-input nodes use the
    unnamed handle (None); merge nodes use "input-0", "input-1", ...
    """
    id: EdgeId
    source_node_id: NodeId
    target_node_id: NodeId
    source_handle: str | None = None
    target_handle: str | None = None

    @classmethod
    def create(
        cls,
        source_node_id: NodeId,
        target_node_id: NodeId,
        target_handle: str | None = None,
        source_handle: str | None = None,
    ) -> Edge:
        """Factory method to create a new edge."""
        return cls(
            id=new_edge_id(),
            source_node_id=source_node_id,
            target_node_id=target_node_id,
            source_handle=source_handle,
            target_handle=normalize_handle(target_handle),
        )


@dataclass
class Node:
    """
    A single node in the processing graph.

    `output` and `dims` belong to the node's own evaluation and are
    written only through GraphStore.commit(); they are set and cleared
    together.
    """
    id: NodeId
    effect: EffectSpec
    label: str = ""
    has_source: bool = True
    has_target: bool = True
    output: Raster | None = field(default=None, repr=False)
    dims: Dims | None = None

    @classmethod
    def create(cls, effect: EffectSpec, label: str | None = None) -> Node:
        """Factory method to create a new node."""
        return cls(
            id=new_node_id(),
            effect=effect,
            label=label if label is not None else effect.kind.value.replace("_", " ").title(),
            has_source=bool(input_handles(effect)),
        )

    @property
    def kind(self) -> EffectKind:
        return self.effect.kind

    @property
    def has_output(self) -> bool:
        return self.output is not None


class GraphEventType(Enum):
    NODE_ADDED = auto()
    NODE_REMOVED = auto()
    EDGE_ADDED = auto()
    EDGE_REMOVED = auto()
    EFFECT_UPDATED = auto()
    OUTPUT_COMMITTED = auto()


@dataclass(frozen=True)
class GraphEvent:
    """A single change to the graph, delivered to listeners."""
    type: GraphEventType
    node_id: NodeId
    edge: Edge | None = None


GraphListener = Callable[[GraphEvent], None]


class GraphStore:
    """
    The node graph that external editors mutate and the engine reads.

    Listeners are called synchronously after every mutation.
    """

    def __init__(
        self,
        catalog: EffectCatalog | None = None,
        arena: RasterArena | None = None,
    ):
        self._catalog = catalog
        self.arena = arena if arena is not None else RasterArena()
        self._nodes: dict[NodeId, Node] = {}
        self._edges: list[Edge] = []
        self._listeners: list[GraphListener] = []

    @property
    def catalog(self) -> EffectCatalog:
        if self._catalog is None:
            from canal.core.effects import default_catalog
            self._catalog = default_catalog()
        return self._catalog

    # --- Notifications ---

    def subscribe(self, listener: GraphListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, type: GraphEventType, node_id: NodeId, edge: Edge | None = None) -> None:
        event = GraphEvent(type, node_id, edge)
        for listener in list(self._listeners):
            listener(event)

    # --- Node operations ---

    @property
    def nodes(self) -> dict[NodeId, Node]:
        """Get all nodes (read-only view)."""
        return self._nodes.copy()

    def get_node(self, node_id: NodeId) -> Node | None:
        """Get a node by ID."""
        return self._nodes.get(node_id)

    def add_node(
        self,
        effect: EffectSpec,
        *,
        label: str | None = None,
        has_target: bool | None = None,
    ) -> Node:
        """Add a node carrying `effect` to the graph."""
        node = Node.create(effect, label)
        effect_type = self._catalog.get(effect.kind) if self._catalog else None
        if effect_type is not None:
            node.has_source = effect_type.has_source
            node.has_target = effect_type.has_target
        if has_target is not None:
            node.has_target = has_target
        self._insert(node)
        return node

    def create_node(self, kind: EffectKind, label: str | None = None) -> Node:
        """Add a node of the given kind with the catalog's default effect."""
        effect_type = self.catalog.get(kind)
        if effect_type is None:
            raise GraphError(f"Unknown effect kind: {kind}")
        return self.add_node(
            effect_type.create_default(),
            label=label if label is not None else effect_type.name,
        )

    def _insert(self, node: Node) -> None:
        self._nodes[node.id] = node
        self._emit(GraphEventType.NODE_ADDED, node.id)

    def remove_node(self, node_id: NodeId) -> Node | None:
        """
        Remove a node and all its edges.

        Returns the removed node, or None if not found.
        """
        node = self._nodes.get(node_id)
        if node is None:
            return None

        for edge in [
            e for e in self._edges
            if e.source_node_id == node_id or e.target_node_id == node_id
        ]:
            self.remove_edge(edge.id)

        del self._nodes[node_id]
        self.arena.release_owner(node_id)
        self._emit(GraphEventType.NODE_REMOVED, node_id)
        return node

    def update_effect(
        self,
        node_id: NodeId,
        effect: EffectSpec | None = None,
        **changes: Any,
    ) -> Node:
        """
        Replace a node's effect, or change some of its fields.

        Edges left on handles the new effect no longer exposes (a merge
        with fewer inputs, or a switch to an input-less effect) are removed.

        Raises:
            GraphError: If the node does not exist or a field is unknown
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise GraphError(f"Node not found: {node_id}")

        new_effect = effect if effect is not None else node.effect
        if changes:
            new_effect = with_changes(new_effect, **changes)
        if new_effect == node.effect:
            return node

        node.effect = new_effect
        handles = input_handles(new_effect)
        node.has_source = bool(handles)
        for edge in self.edges_targeting(node_id):
            if edge.target_handle not in handles:
                self.remove_edge(edge.id)

        self._emit(GraphEventType.EFFECT_UPDATED, node_id)
        return node

    def commit(
        self,
        node_id: NodeId,
        raster: Raster | None,
        dims: Dims | None,
    ) -> bool:
        """
        Write a newly evaluated output into a node.

        A missing raster or missing dims clears both. Returns False if the
        node no longer exists.
        """
        node = self._nodes.get(node_id)
        if node is None:
            return False

        if raster is None or dims is None:
            raster, dims = None, None

        node.output = raster
        node.dims = dims
        self.arena.assign(node_id, raster)
        self._emit(GraphEventType.OUTPUT_COMMITTED, node_id)
        return True

    def duplicate_node(self, node_id: NodeId) -> Node:
        """
        Copy a node together with its edges.

        Incoming edges are copied onto the duplicate's handles. Outgoing
        edges are copied only where the consumer's handle is free, so a
        consumer already fed by the original stays wired to it.
        Only Text nodes keep their output; everything else re-evaluates.

        Raises:
            GraphError: If the node does not exist
        """
        original = self._nodes.get(node_id)
        if original is None:
            raise GraphError(f"Node not found: {node_id}")

        duplicate = dataclasses.replace(
            original,
            id=new_node_id(),
            output=None,
            dims=None,
        )
        keep_output = isinstance(original.effect, TextEffect)
        if keep_output:
            duplicate.output = original.output
            duplicate.dims = original.dims
            self.arena.assign(duplicate.id, duplicate.output)
        self._insert(duplicate)

        incoming = self.edges_targeting(node_id)
        outgoing = self.edges_from(node_id)
        for edge in incoming:
            self.add_edge(dataclasses.replace(
                edge, id=new_edge_id(), target_node_id=duplicate.id,
            ), replace=False)
        for edge in outgoing:
            self.add_edge(dataclasses.replace(
                edge, id=new_edge_id(), source_node_id=duplicate.id,
            ), replace=False)

        return duplicate

    # --- Edge operations ---

    @property
    def edges(self) -> list[Edge]:
        """Get all edges (read-only copy)."""
        return self._edges.copy()

    def get_edge(self, edge_id: EdgeId) -> Edge | None:
        for edge in self._edges:
            if edge.id == edge_id:
                return edge
        return None

    def add_edge(self, edge: Edge, *, replace: bool = True) -> bool:
        """
        Add an edge to the graph.

        An edge already occupying the same target handle is replaced,
        or, with replace=False, the new edge is refused.

        Returns False if either node is missing, the target takes no
        input on that handle, the source has no output, or the edge
        would close a cycle.
        """
        source = self._nodes.get(edge.source_node_id)
        target = self._nodes.get(edge.target_node_id)
        if source is None or target is None:
            return False
        if not source.has_target or not target.has_source:
            logger.debug("Rejected edge %s: endpoint has no handle", edge.id)
            return False

        handle = normalize_handle(edge.target_handle)
        if handle not in input_handles(target.effect):
            logger.debug("Rejected edge %s: unknown handle %r", edge.id, handle)
            return False
        if handle != edge.target_handle:
            edge = dataclasses.replace(edge, target_handle=handle)

        if self._would_create_cycle(edge):
            logger.info(
                "Rejected edge %s -> %s: would create a cycle",
                edge.source_node_id, edge.target_node_id,
            )
            return False

        occupied = [
            e for e in self._edges
            if e.target_node_id == edge.target_node_id and e.target_handle == handle
        ]
        if occupied and not replace:
            return False
        for existing in occupied:
            self.remove_edge(existing.id)

        self._edges.append(edge)
        self._emit(GraphEventType.EDGE_ADDED, edge.target_node_id, edge)
        return True

    def connect(
        self,
        source_node_id: NodeId,
        target_node_id: NodeId,
        target_handle: str | None = None,
    ) -> Edge | None:
        """Create and add an edge. Returns the edge, or None if rejected."""
        edge = Edge.create(source_node_id, target_node_id, target_handle)
        return edge if self.add_edge(edge) else None

    def remove_edge(self, edge_id: EdgeId) -> Edge | None:
        """Remove an edge by ID."""
        for i, edge in enumerate(self._edges):
            if edge.id == edge_id:
                removed = self._edges.pop(i)
                self._emit(GraphEventType.EDGE_REMOVED, removed.target_node_id, removed)
                return removed
        return None

    def edges_targeting(self, node_id: NodeId) -> list[Edge]:
        """All edges feeding into a node, on any handle."""
        return [e for e in self._edges if e.target_node_id == node_id]

    def edges_from(self, node_id: NodeId) -> list[Edge]:
        """All edges leaving a node."""
        return [e for e in self._edges if e.source_node_id == node_id]

    # --- Graph analysis ---

    def get_upstream_nodes(self, node_id: NodeId) -> set[NodeId]:
        """Get all nodes that this node depends on (directly or indirectly)."""
        upstream: set[NodeId] = set()
        to_visit = [node_id]

        while to_visit:
            current = to_visit.pop()
            for edge in self._edges:
                if edge.target_node_id == current:
                    source_id = edge.source_node_id
                    if source_id not in upstream:
                        upstream.add(source_id)
                        to_visit.append(source_id)

        return upstream

    def get_downstream_nodes(self, node_id: NodeId) -> set[NodeId]:
        """Get all nodes that depend on this node (directly or indirectly)."""
        downstream: set[NodeId] = set()
        to_visit = [node_id]

        while to_visit:
            current = to_visit.pop()
            for edge in self._edges:
                if edge.source_node_id == current:
                    target_id = edge.target_node_id
                    if target_id not in downstream:
                        downstream.add(target_id)
                        to_visit.append(target_id)

        return downstream

    def _would_create_cycle(self, edge: Edge) -> bool:
        """Check if adding this edge would create a cycle."""
        if edge.source_node_id == edge.target_node_id:
            return True

        # If the source is reachable from the target, source -> target
        # would close the loop
        return edge.source_node_id in self.get_downstream_nodes(edge.target_node_id)

    # --- Utility ---

    def clear(self) -> None:
        """Remove all nodes and edges."""
        for node_id in list(self._nodes):
            self.remove_node(node_id)

    def __len__(self) -> int:
        """Return the number of nodes."""
        return len(self._nodes)

    def __contains__(self, node_id: NodeId) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self._nodes
