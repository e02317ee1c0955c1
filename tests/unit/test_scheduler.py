"""
Tests for reactive propagation.
"""

import asyncio

import numpy as np

from canal.core.arena import RasterArena
from canal.core.effects import (
    BlurEffect,
    CompositionEffect,
    EffectCategory,
    EffectKind,
    EffectType,
    ExportEffect,
    FileEffect,
    MergeEffect,
    NullEffect,
    TextEffect,
    default_catalog,
)
from canal.core.evaluator import EvaluationResult, require_upstream
from canal.core.graph import GraphEventType, GraphStore
from canal.core.raster import Dims, Raster
from canal.core.scheduler import NodeState, PropagationScheduler


def gated_catalog(gates):
    """Default catalog whose Blur waits for gates[amount] before finishing."""

    async def gated_blur(effect, upstream, context):
        source = require_upstream(upstream)
        gate = gates.get(effect.amount)
        if gate is not None:
            await gate.wait()
        raster = Raster(pixels=source.output.pixels.copy(), source_name=f"amount={effect.amount}")
        return EvaluationResult(raster=raster, dims=source.dims)

    catalog = default_catalog()
    catalog.register(EffectType(
        kind=EffectKind.BLUR,
        name="Blur",
        category=EffectCategory.FILTER,
        spec_class=BlurEffect,
        executor=gated_blur,
    ))
    return catalog


class TestPropagation:
    """Outputs follow upstream changes."""

    def test_chain_evaluates(self, png_bytes):
        store = GraphStore()
        scheduler = PropagationScheduler(store)

        source = store.add_node(FileEffect(file_name="in.png", source_ref=png_bytes(200, 100)))
        blur = store.add_node(BlurEffect(amount=0))
        comp = store.add_node(CompositionEffect(width=100, height=100, fit_mode="contain"))
        export = store.add_node(ExportEffect())
        store.connect(source.id, blur.id)
        store.connect(blur.id, comp.id)
        store.connect(comp.id, export.id)

        asyncio.run(scheduler.wait_idle())

        assert source.dims == Dims(200, 100)
        assert blur.dims == Dims(200, 100)
        assert export.dims == Dims(100, 100)
        assert export.output is comp.output

        alpha = export.output.pixels[..., 3]
        assert np.all(alpha[:20] == 0.0)
        assert np.all(alpha[80:] == 0.0)
        assert np.allclose(alpha[30:70], 1.0)

    def test_effect_change_propagates(self, png_bytes):
        store = GraphStore()
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(20, 10)))
        comp = store.add_node(CompositionEffect(width=40, height=40))
        export = store.add_node(ExportEffect())
        store.connect(source.id, comp.id)
        store.connect(comp.id, export.id)
        asyncio.run(scheduler.wait_idle())

        store.update_effect(comp.id, width=16, height=8)
        asyncio.run(scheduler.wait_idle())

        assert export.dims == Dims(16, 8)
        assert export.output.size == (16, 8)

    def test_disconnect_clears_downstream(self, png_bytes):
        store = GraphStore()
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(8, 8)))
        blur = store.add_node(BlurEffect(amount=1))
        export = store.add_node(ExportEffect())
        edge = store.connect(source.id, blur.id)
        store.connect(blur.id, export.id)
        asyncio.run(scheduler.wait_idle())
        assert export.has_output

        store.remove_edge(edge.id)
        asyncio.run(scheduler.wait_idle())

        assert blur.output is None
        assert export.output is None
        assert export.dims is None

    def test_delete_clears_downstream(self, png_bytes):
        store = GraphStore()
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(8, 8)))
        null = store.add_node(NullEffect())
        export = store.add_node(ExportEffect())
        store.connect(source.id, null.id)
        store.connect(null.id, export.id)
        asyncio.run(scheduler.wait_idle())

        store.remove_node(null.id)
        asyncio.run(scheduler.wait_idle())

        assert export.output is None
        assert scheduler.state(null.id) is None

    def test_reconnect_restores_output(self, png_bytes):
        store = GraphStore()
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(8, 4)))
        export = store.add_node(ExportEffect())
        edge = store.connect(source.id, export.id)
        asyncio.run(scheduler.wait_idle())

        store.remove_edge(edge.id)
        store.connect(source.id, export.id)
        asyncio.run(scheduler.wait_idle())

        assert export.output is source.output
        assert export.dims == Dims(8, 4)

    def test_merge_waits_for_all_inputs(self):
        store = GraphStore()
        scheduler = PropagationScheduler(store)
        first = store.add_node(TextEffect(text="Base"))
        second = store.add_node(TextEffect(text="Top", font_size=12))
        merge = store.add_node(MergeEffect(input_count=2))
        store.connect(first.id, merge.id, "input-0")
        asyncio.run(scheduler.wait_idle())

        # Only the base: pass-through
        assert merge.output is first.output

        store.connect(second.id, merge.id, "input-1")
        asyncio.run(scheduler.wait_idle())

        assert merge.output is not first.output
        assert merge.dims == first.dims
        assert merge.output.size == first.dims.pixel_size

        store.update_effect(merge.id, input_count=3)
        asyncio.run(scheduler.wait_idle())

        assert merge.output is None

    def test_start_evaluates_existing_nodes(self, png_bytes):
        store = GraphStore()
        source = store.add_node(FileEffect(source_ref=png_bytes(5, 5)))
        export = store.add_node(ExportEffect())
        store.connect(source.id, export.id)

        scheduler = PropagationScheduler(store)
        assert scheduler.state(source.id) == NodeState.IDLE

        scheduler.start()
        asyncio.run(scheduler.wait_idle())

        assert export.dims == Dims(5, 5)
        assert scheduler.state(export.id) == NodeState.COMMITTED
        assert scheduler.is_idle

    def test_unchanged_result_is_not_recommitted(self, png_bytes):
        store = GraphStore()
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(4, 4)))
        null = store.add_node(NullEffect())
        store.connect(source.id, null.id)
        asyncio.run(scheduler.wait_idle())

        commits = []
        store.subscribe(
            lambda e: commits.append(e) if e.type == GraphEventType.OUTPUT_COMMITTED else None
        )
        scheduler.schedule(null.id)
        asyncio.run(scheduler.wait_idle())

        assert commits == []

    def test_close_stops_scheduling(self):
        store = GraphStore()
        scheduler = PropagationScheduler(store)
        scheduler.close()

        node = store.add_node(TextEffect())
        asyncio.run(scheduler.wait_idle())

        assert scheduler.state(node.id) is None
        assert node.output is None


class TestStaleResults:
    """Out-of-order completions never overwrite newer results."""

    def test_stale_evaluation_discarded(self, png_bytes):
        gates = {}
        store = GraphStore(gated_catalog(gates))
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(4, 4)))
        blur = store.add_node(BlurEffect(amount=5))
        store.connect(source.id, blur.id)
        asyncio.run(scheduler.wait_idle())
        assert blur.output.source_name == "amount=5"

        async def scenario():
            gates[30] = asyncio.Event()
            gates[1] = asyncio.Event()
            committed = asyncio.Event()
            store.subscribe(
                lambda e: committed.set()
                if e.type == GraphEventType.OUTPUT_COMMITTED and e.node_id == blur.id
                else None
            )

            store.update_effect(blur.id, amount=30)
            store.update_effect(blur.id, amount=1)

            gates[1].set()
            await asyncio.wait_for(committed.wait(), timeout=5)
            assert blur.output.source_name == "amount=1"

            gates[30].set()
            await scheduler.wait_idle()

        asyncio.run(scenario())

        assert blur.output.source_name == "amount=1"
        assert scheduler.generation(blur.id) >= 3

    def test_deleted_node_discards_result(self, png_bytes):
        gates = {}
        store = GraphStore(gated_catalog(gates))
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(4, 4)))
        asyncio.run(scheduler.wait_idle())

        async def scenario():
            gates[7] = asyncio.Event()
            blur = store.add_node(BlurEffect(amount=7))
            store.connect(source.id, blur.id)
            await asyncio.sleep(0)

            store.remove_node(blur.id)
            gates[7].set()
            await scheduler.wait_idle()
            return blur

        blur = asyncio.run(scenario())

        assert blur.id not in store
        assert blur.output is None
        assert store.arena.owned_by(blur.id) is None


class TestRasterOwnership:
    """Committed rasters are released when replaced or deleted."""

    def test_passthrough_shares_raster(self, png_bytes):
        store = GraphStore()
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(4, 4)))
        null = store.add_node(NullEffect())
        store.connect(source.id, null.id)
        asyncio.run(scheduler.wait_idle())

        assert null.output is source.output
        assert store.arena.refcount(source.output) == 2
        assert store.arena.live_count == 1

    def test_replaced_raster_released(self, png_bytes):
        released = []
        store = GraphStore(arena=RasterArena(on_release=released.append))
        scheduler = PropagationScheduler(store)
        source = store.add_node(FileEffect(source_ref=png_bytes(4, 4)))
        null = store.add_node(NullEffect())
        store.connect(source.id, null.id)
        asyncio.run(scheduler.wait_idle())
        old = source.output

        store.update_effect(source.id, source_ref=png_bytes(6, 6))
        asyncio.run(scheduler.wait_idle())

        assert released == [old]
        assert store.arena.refcount(old) == 0
        assert store.arena.refcount(null.output) == 2
