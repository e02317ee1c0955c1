"""
Tests for upstream resolution.
"""

from uuid import UUID

from canal.core.effects import BlurEffect, FileEffect, MergeEffect, TextEffect
from canal.core.graph import Edge, EdgeId, GraphStore, Node
from canal.core.raster import Dims
from canal.core.resolver import DependencyResolver, UpstreamRef, connected_refs


class FakeReader:
    """Minimal graph reader with hand-picked edges."""

    def __init__(self, nodes, edges):
        self.nodes = {n.id: n for n in nodes}
        self.edges = edges

    def get_node(self, node_id):
        return self.nodes.get(node_id)

    def edges_targeting(self, node_id):
        return [e for e in self.edges if e.target_node_id == node_id]


def _edge(number, source, target, handle=None):
    return Edge(
        id=EdgeId(UUID(int=number)),
        source_node_id=source.id,
        target_node_id=target.id,
        target_handle=handle,
    )


class TestSingleInput:
    """Resolution for single-input nodes."""

    def test_unconnected(self):
        store = GraphStore()
        blur = store.add_node(BlurEffect())

        assert DependencyResolver(store).resolve(blur.id) is None

    def test_connected_without_output(self):
        store = GraphStore()
        source = store.add_node(FileEffect())
        blur = store.add_node(BlurEffect())
        store.connect(source.id, blur.id)

        ref = DependencyResolver(store).resolve(blur.id)

        assert ref == UpstreamRef(source.id, None, None)
        assert ref.ready is False

    def test_connected_with_output(self, make_raster):
        store = GraphStore()
        source = store.add_node(FileEffect())
        blur = store.add_node(BlurEffect())
        store.connect(source.id, blur.id)
        raster = make_raster(8, 4)
        store.commit(source.id, raster, Dims(8, 4))

        ref = DependencyResolver(store).resolve(blur.id)

        assert ref.output is raster
        assert ref.dims == Dims(8, 4)
        assert ref.ready is True

    def test_source_nodes_resolve_to_none(self):
        store = GraphStore()
        text = store.add_node(TextEffect())

        assert DependencyResolver(store).resolve(text.id) is None

    def test_unknown_node(self):
        store = GraphStore()
        other = Node.create(BlurEffect())

        assert DependencyResolver(store).resolve(other.id) is None

    def test_lowest_edge_id_wins(self):
        first = Node.create(FileEffect(), "first")
        second = Node.create(FileEffect(), "second")
        blur = Node.create(BlurEffect())
        reader = FakeReader(
            [first, second, blur],
            [_edge(7, second, blur), _edge(3, first, blur)],
        )

        ref = DependencyResolver(reader).resolve(blur.id)

        assert ref.source_node_id == first.id


class TestMergeInputs:
    """Resolution for merge nodes."""

    def test_one_slot_per_handle(self):
        store = GraphStore()
        merge = store.add_node(MergeEffect(input_count=3))

        assert DependencyResolver(store).resolve(merge.id) == [None, None, None]

    def test_slots_follow_handles(self):
        store = GraphStore()
        a = store.add_node(FileEffect())
        b = store.add_node(FileEffect())
        merge = store.add_node(MergeEffect(input_count=3))
        store.connect(b.id, merge.id, "input-2")
        store.connect(a.id, merge.id, "input-0")

        slots = DependencyResolver(store).resolve(merge.id)

        assert slots[0].source_node_id == a.id
        assert slots[1] is None
        assert slots[2].source_node_id == b.id

    def test_lowest_edge_id_wins_per_handle(self):
        first = Node.create(FileEffect())
        second = Node.create(FileEffect())
        merge = Node.create(MergeEffect(input_count=2))
        reader = FakeReader(
            [first, second, merge],
            [_edge(9, first, merge, "input-1"), _edge(4, second, merge, "input-1")],
        )

        slots = DependencyResolver(reader).resolve(merge.id)

        assert slots[0] is None
        assert slots[1].source_node_id == second.id


class TestConnectedRefs:
    """Tests for flattening resolved upstream."""

    def test_connected_refs(self):
        ref = UpstreamRef(Node.create(FileEffect()).id, None, None)
        assert connected_refs(None) == []
        assert connected_refs(ref) == [ref]
        assert connected_refs([None, ref, None]) == [ref]
