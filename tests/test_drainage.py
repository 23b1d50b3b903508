"""Tests for depression filling."""

import pytest
import numpy as np

from py_terrain.core.drainage import fill_sinks
from py_terrain.core.fields import FieldContext, smooth_field, synthesize_fields
from py_terrain.core.point_sampler import sample_points
from py_terrain.core.voronoi_graph import build_cell_graph


def _adjacency(edges, n):
    neighbors = [[] for _ in range(n)]
    for a, b in edges:
        neighbors[a].append(b)
        neighbors[b].append(a)
    return [np.array(sorted(n_list), dtype=np.int32) for n_list in neighbors]


def _drains_monotonically(elevations, cell_neighbors):
    """Cells with a non-increasing neighbor path down to a cell <= 0."""
    drained = elevations <= 0
    changed = True
    while changed:
        changed = False
        for cell in np.flatnonzero(~drained):
            for neighbor in cell_neighbors[cell]:
                if drained[neighbor] and elevations[neighbor] <= elevations[cell]:
                    drained[cell] = True
                    changed = True
                    break
    return drained


class TestFillSinks:
    """Test priority-flood sink filling."""

    def test_pit_is_raised(self):
        """Test that a pit behind a ridge is lifted just above the ridge."""
        cell_neighbors = _adjacency([(0, 1), (1, 2), (2, 3)], 4)
        elevations = np.array([-1.0, 0.5, 0.2, 0.8])

        filled = fill_sinks(elevations, cell_neighbors, epsilon=1e-5)

        np.testing.assert_allclose(filled, [-1.0, 0.5, 0.5 + 1e-5, 0.8])
        assert filled[2] > filled[1]

    def test_input_not_modified(self):
        """Test that the caller's array is left alone."""
        cell_neighbors = _adjacency([(0, 1), (1, 2)], 3)
        elevations = np.array([-1.0, 0.5, 0.2])
        fill_sinks(elevations, cell_neighbors)
        np.testing.assert_array_equal(elevations, [-1.0, 0.5, 0.2])

    def test_no_seeds_leaves_elevation(self):
        """Test that a world without ocean is returned unchanged."""
        cell_neighbors = _adjacency([(0, 1), (1, 2)], 3)
        elevations = np.array([0.3, 0.1, 0.4])
        np.testing.assert_array_equal(fill_sinks(elevations, cell_neighbors), elevations)

    def test_unreachable_cells_keep_raw_elevation(self):
        """Test that an enclosed component without ocean is not filled."""
        # 0-1 has ocean, 2-3-4 is disconnected with a pit at 3
        cell_neighbors = _adjacency([(0, 1), (2, 3), (3, 4)], 5)
        elevations = np.array([-0.5, 0.2, 0.6, 0.1, 0.7])

        filled = fill_sinks(elevations, cell_neighbors)
        np.testing.assert_array_equal(filled[2:], elevations[2:])

    def test_empty_input(self):
        """Test that empty input is a no-op."""
        assert len(fill_sinks(np.empty(0), [])) == 0

    def test_invalid_epsilon(self):
        """Test that epsilon must be strictly positive."""
        with pytest.raises(ValueError):
            fill_sinks(np.array([0.0]), [np.empty(0, dtype=np.int32)], epsilon=0.0)


class TestFillSinksOnTerrain:
    """Test sink filling on synthesized terrain."""

    @pytest.fixture
    def terrain(self):
        """Create a smoothed noise terrain."""
        rng = np.random.default_rng(21)
        points = sample_points(600, 600, 500, rng)
        graph = build_cell_graph(points, 600, 600)
        context = FieldContext.random(rng, 600, 600)
        elevations, _ = synthesize_fields(graph.points, context)
        return graph, smooth_field(elevations, graph, 2)

    def test_never_lowers(self, terrain):
        """Test that filling only raises cells."""
        graph, elevations = terrain
        filled = fill_sinks(elevations, graph.cell_neighbors)
        assert np.all(filled >= elevations)

    def test_ocean_untouched(self, terrain):
        """Test that seed cells keep their elevation."""
        graph, elevations = terrain
        filled = fill_sinks(elevations, graph.cell_neighbors)
        ocean = elevations <= 0
        np.testing.assert_array_equal(filled[ocean], elevations[ocean])

    def test_drainage_monotonicity(self, terrain):
        """Test that every land cell has a non-increasing path to the sea."""
        graph, elevations = terrain
        if not np.any(elevations <= 0):
            pytest.skip("terrain has no ocean")

        filled = fill_sinks(elevations, graph.cell_neighbors)
        drained = _drains_monotonically(filled, graph.cell_neighbors)
        assert np.all(drained)

    def test_raw_terrain_has_pits(self, terrain):
        """Test that the monotonic path check is not trivially true."""
        graph, elevations = terrain
        filled = fill_sinks(elevations, graph.cell_neighbors)
        raised = np.flatnonzero(filled > elevations)
        if len(raised) == 0:
            pytest.skip("terrain has no pits")

        drained = _drains_monotonically(elevations, graph.cell_neighbors)
        assert not np.all(drained[raised])
