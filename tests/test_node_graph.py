"""Tests for the triangular lattice node graph."""

import math

import numpy as np
import pytest

from py_watershed.core.lattice_hash import hash32, randf
from py_watershed.core.node_graph import Coordinate, NodeGraph, TRIHEIGHT


class TestLatticeHash:
    """Test deterministic coordinate hashing."""

    def test_hash_is_32_bit(self):
        for value in (0, 1, -1, 12345, 2**40 + 7, -(2**35)):
            h = hash32(value)
            assert -(2**31) <= h < 2**31

    def test_hash_is_deterministic(self):
        assert hash32(930 * 42) == hash32(930 * 42)

    def test_randf_range(self):
        for x in range(-5, 5):
            for y in range(10):
                r = randf(Coordinate(x, y), 42)
                assert 0.0 <= r < 1.0

    def test_randf_depends_on_seed(self):
        coords = [Coordinate(x, y) for x in range(5) for y in range(5)]
        first = [randf(c, 1) for c in coords]
        second = [randf(c, 2) for c in coords]
        assert first != second


class TestNodeGraph:
    """Test lattice construction and queries."""

    @pytest.fixture
    def graph(self):
        """8 columns of spacing 8 on a 64 x 64 map, no jitter."""
        return NodeGraph(seed=42, size=(64, 64), node_size=8, node_randomness=0.0)

    def test_node_count(self, graph):
        # 9 nodes per row, rows 0..ceil(8 / 0.866) = 10
        assert len(graph) == 99

    def test_outer_ring_is_sink(self, graph):
        for node in graph.all():
            x, y = node.id
            left = -(y // 2)
            on_ring = y in (0, 10) or x in (left, left + 8)
            assert node.sink == on_ring

    def test_sink_counts(self, graph):
        sinks = graph.sinks()
        assert len(sinks) == 36
        assert len({node.id for node in sinks}) == 36
        assert all(node.is_sink() for node in sinks)
        assert sum(1 for node in graph.all() if not node.is_sink()) == 63

    def test_interior_nodes_have_six_neighbours(self, graph):
        for node in graph.all():
            if node.is_sink():
                assert len(node.neighbours) < 6
            else:
                assert len(node.neighbours) == 6

    def test_neighbours_are_symmetric(self, graph):
        for node in graph.all():
            for neighbour in node.neighbours:
                assert node in neighbour.neighbours

    def test_get_node(self, graph):
        node = graph.get_node(Coordinate(0, 0))
        assert node is not None
        assert node.id == Coordinate(0, 0)
        assert graph.get_node(Coordinate(100, 100)) is None
        assert graph.get_node(Coordinate(-1, 0)) is None

    def test_positions_without_jitter(self, graph):
        for node in graph.all():
            x, y = node.id
            assert node.position[0] == pytest.approx((x + y / 2) * 8)
            assert node.position[1] == pytest.approx(y * TRIHEIGHT * 8)

    def test_jitter_is_bounded_and_seeded(self):
        a = NodeGraph(seed=5, size=(64, 64), node_size=8, node_randomness=1.0)
        b = NodeGraph(seed=5, size=(64, 64), node_size=8, node_randomness=1.0)
        c = NodeGraph(seed=6, size=(64, 64), node_size=8, node_randomness=1.0)

        for node in a.all():
            x, y = node.id
            ideal = ((x + y / 2) * 8, y * TRIHEIGHT * 8)
            offset = math.hypot(node.position[0] - ideal[0], node.position[1] - ideal[1])
            assert offset <= 8 * 0.5 + 1e-9
            assert b.get_node(node.id).position == node.position

        assert any(c.get_node(node.id).position != node.position for node in a.all())

    def test_nearest_returns_node_at_its_own_position(self, graph):
        for node in graph.all():
            assert graph.nearest(node.position) is node

    def test_nearest_between_nodes(self, graph):
        node = graph.get_node(Coordinate(2, 4))
        point = (node.position[0] + 1.0, node.position[1] - 1.0)
        assert graph.nearest(point) is node

    def test_drains_topology_error(self, graph):
        interior = graph.get_node(Coordinate(2, 4))
        assert graph.drains(interior) is None
        sink = graph.get_node(Coordinate(0, 0))
        assert graph.drains(sink) == []

    def test_triangles_are_made_of_neighbours(self, graph):
        triangles = graph.triangles()
        assert len(triangles) > 0
        for a, b, c in triangles:
            assert b in a.neighbours and c in a.neighbours and c in b.neighbours

    def test_reset_clears_transient_state(self, graph):
        node = graph.get_node(Coordinate(2, 4))
        node.base_height = 12.0
        node.water_height = 3.0
        node.water = 5.0
        node.sediment = 1.0
        node.sea = True
        node.drains = [Coordinate(1, 4)]

        graph.reset(preserve_discharge=True)
        assert node.water == 5.0
        assert node.water_height == 0.0
        assert node.sediment == 0.0
        assert node.drains == []
        assert node.sea is False
        assert node.base_height == 12.0

        node.momentum = 2.0
        graph.reset()
        assert node.water == 0.0
        assert node.momentum == 0.0
        assert node.outflow == []
        assert len(node.neighbours) == 6

    def test_reset_can_keep_standing_water(self, graph):
        node = graph.get_node(Coordinate(2, 4))
        node.water_height = 3.0
        node.sea = True
        node.sediment = 1.0

        graph.reset(preserve_discharge=True, preserve_water=True)
        assert node.water_height == 3.0
        assert node.sea is True
        assert node.is_water_body()
        assert node.sediment == 0.0

    def test_node_height_invariants(self, graph):
        node = graph.get_node(Coordinate(2, 4))
        node.base_height = 4.0
        node.water_height = 2.5
        assert node.height() == 6.5
        assert node.water_volume() == 2.5
        assert node.is_water_body()
        node.water_height = 1e-10
        assert not node.is_water_body()

    def test_to_arrays(self, graph):
        arrays = graph.to_arrays()
        assert arrays["ids"].shape == (99, 2)
        assert arrays["positions"].shape == (99, 2)
        assert arrays["height"].shape == (99,)
        assert np.count_nonzero(arrays["sea"]) == 36

    @pytest.mark.parametrize("size,node_size,randomness", [
        ((0, 64), 8, 0.0),
        ((64, -1), 8, 0.0),
        ((64, 64), 0, 0.0),
        ((64, 64), 8, 1.5),
    ])
    def test_invalid_arguments(self, size, node_size, randomness):
        with pytest.raises(ValueError):
            NodeGraph(seed=1, size=size, node_size=node_size, node_randomness=randomness)
