"""
Propagation Scheduler - Keeps node outputs consistent with the graph.

The scheduler listens to a GraphStore. Whenever something a node depends
on changes (its effect, its connections, or the committed output of a
node feeding it) a fresh evaluation of that node alone is started. When
the evaluation finishes and the result differs from what is committed,
the result is committed, which in turn notifies the nodes downstream.

There is no global ordering and no batching. Evaluations are never
cancelled; instead every evaluation carries the node's generation number
at the time it was started, and a result whose generation is no longer
current is dropped instead of committed.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto

from canal.core.evaluator import Evaluator
from canal.core.graph import GraphEvent, GraphEventType, GraphStore, NodeId
from canal.core.resolver import DependencyResolver
from canal.core.settings import EngineSettings

logger = logging.getLogger(__name__)


class NodeState(Enum):
    """Evaluation state of a node."""
    IDLE = auto()
    EVALUATING = auto()
    COMMITTED = auto()


class PropagationScheduler:
    """
    Re-evaluates nodes when their inputs change.

    Mutations may happen outside a running event loop; nodes scheduled
    that way are evaluated on the next call to wait_idle().

    Example:
        scheduler = PropagationScheduler(store)
        store.connect(file_node.id, blur_node.id)
        await scheduler.wait_idle()
    """

    def __init__(
        self,
        store: GraphStore,
        evaluator: Evaluator | None = None,
        settings: EngineSettings | None = None,
    ):
        self.store = store
        self.settings = settings or EngineSettings()
        self.evaluator = evaluator or Evaluator(store.catalog, self.settings)
        self._resolver = DependencyResolver(store)

        self._states: dict[NodeId, NodeState] = {}
        self._generations: dict[NodeId, int] = {}
        self._pending: dict[NodeId, int] = {}
        self._tasks: set[asyncio.Task] = set()

        self._unsubscribe = store.subscribe(self._on_graph_event)
        for node_id in store.nodes:
            self._states[node_id] = NodeState.IDLE

    # --- Queries ---

    def state(self, node_id: NodeId) -> NodeState | None:
        """Current state of a node, or None if the node is unknown."""
        return self._states.get(node_id)

    def generation(self, node_id: NodeId) -> int:
        """Number of evaluations requested for a node so far."""
        return self._generations.get(node_id, 0)

    @property
    def is_idle(self) -> bool:
        return not self._tasks and not self._pending

    # --- Scheduling ---

    def start(self) -> None:
        """Schedule every node already in the store."""
        for node_id in self.store.nodes:
            self.schedule(node_id)

    def schedule(self, node_id: NodeId) -> int:
        """
        Start a fresh evaluation of one node.

        Returns:
            The generation number of the new evaluation
        """
        generation = self._generations.get(node_id, 0) + 1
        self._generations[node_id] = generation

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._pending[node_id] = generation
            return generation

        self._spawn(node_id, generation)
        return generation

    def _spawn(self, node_id: NodeId, generation: int) -> None:
        self._states[node_id] = NodeState.EVALUATING
        task = asyncio.create_task(self._evaluate(node_id, generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait until no evaluation is running, including follow-up ones."""
        while self._pending or self._tasks:
            pending, self._pending = self._pending, {}
            for node_id, generation in pending.items():
                if node_id in self.store and generation == self._generations.get(node_id):
                    self._spawn(node_id, generation)
            if self._tasks:
                await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        """Stop listening to the store."""
        self._unsubscribe()
        self._pending.clear()

    # --- Evaluation ---

    async def _evaluate(self, node_id: NodeId, generation: int) -> None:
        node = self.store.get_node(node_id)
        if node is None:
            return

        upstream = self._resolver.resolve(node_id)
        result = await self.evaluator.evaluate(node.effect, upstream)

        node = self.store.get_node(node_id)
        if node is None:
            logger.debug("Discarding result for deleted node %s", node_id)
            return
        if generation != self._generations.get(node_id):
            logger.debug(
                "Discarding stale result for %s (generation %d, current %d)",
                node_id, generation, self._generations.get(node_id),
            )
            return

        self._states[node_id] = NodeState.COMMITTED

        raster = result.raster if result is not None else None
        dims = result.dims if result is not None else None
        if node.output is raster and node.dims == dims:
            return
        self.store.commit(node_id, raster, dims)

    # --- Graph events ---

    def _on_graph_event(self, event: GraphEvent) -> None:
        if event.type == GraphEventType.NODE_ADDED:
            self._states[event.node_id] = NodeState.IDLE
            self.schedule(event.node_id)

        elif event.type == GraphEventType.NODE_REMOVED:
            self._states.pop(event.node_id, None)
            self._generations.pop(event.node_id, None)
            self._pending.pop(event.node_id, None)

        elif event.type in (
            GraphEventType.EFFECT_UPDATED,
            GraphEventType.EDGE_ADDED,
            GraphEventType.EDGE_REMOVED,
        ):
            if event.node_id in self.store:
                self.schedule(event.node_id)

        elif event.type == GraphEventType.OUTPUT_COMMITTED:
            targets = dict.fromkeys(
                edge.target_node_id for edge in self.store.edges_from(event.node_id)
            )
            for target_id in targets:
                self.schedule(target_id)
