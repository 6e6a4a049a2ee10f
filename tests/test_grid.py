"""
Unit tests for the lattice and region painting.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stonegrid import FunctionState, Lattice, RegionPainter
from stonegrid.errors import InsufficientGrowth, InvalidArgument, Occupied, OutOfBounds
from stonegrid.lattice import Axis


class TestLattice(unittest.TestCase):
    """Tests for Lattice construction and queries."""

    def test_create_lattice(self):
        """Test cell count, unique indices and default state."""
        lattice = Lattice((3, 2, 4))
        cells = list(lattice.iter_cells())

        assert lattice.volume == 24
        assert len(cells) == 24
        assert len({c.index for c in cells}) == 24
        assert all(c.state == FunctionState.EMPTY for c in cells)

    def test_enumeration_order(self):
        """Test x, then y, then z ordering."""
        lattice = Lattice((3, 2, 4))
        indices = [c.index for c in lattice.iter_cells()]

        assert indices[0] == (0, 0, 0)
        assert indices[1] == (0, 0, 1)
        assert indices[4] == (0, 1, 0)
        assert indices[-1] == (2, 1, 3)

    def test_enumeration_restartable(self):
        """Test iterating twice gives the same sequence."""
        lattice = Lattice((2, 2, 2))
        assert list(lattice.iter_corners()) == list(lattice.iter_corners())
        assert list(lattice.iter_faces()) == list(lattice.iter_faces())

    def test_invalid_size(self):
        """Test non-positive dimensions are rejected."""
        with self.assertRaises(InvalidArgument):
            Lattice((0, 1, 1))
        with self.assertRaises(ValueError):
            Lattice((4, -1, 4))
        with self.assertRaises(InvalidArgument):
            Lattice((2, 2))
        with self.assertRaises(InvalidArgument):
            Lattice((2, 2, 2), cell_size=0)

    def test_size_must_be_integer_triple(self):
        """Test scalar and fractional sizes are rejected."""
        with self.assertRaises(InvalidArgument):
            Lattice(5)
        with self.assertRaises(InvalidArgument):
            Lattice((2.5, 1, 2))
        with self.assertRaises(InvalidArgument):
            Lattice(("a", 1, 2))

        lattice = Lattice((np.int64(2), 1.0, 3))
        assert lattice.size == (2, 1, 3)

    def test_index_must_be_integer_triple(self):
        """Test cell queries reject fractional indices."""
        lattice = Lattice((4, 1, 4))
        with self.assertRaises(InvalidArgument):
            lattice.cell_at((1.5, 0, 0))
        with self.assertRaises(InvalidArgument):
            lattice.get_state(3)

    def test_cell_at(self):
        """Test snapshot contents and out-of-range access."""
        lattice = Lattice((4, 2, 4))
        lattice.set_state((1, 0, 2), FunctionState.BLACK)

        cell = lattice.cell_at((1, 0, 2))
        assert cell.index == (1, 0, 2)
        assert cell.active
        assert cell.state == FunctionState.BLACK

        with self.assertRaises(OutOfBounds):
            lattice.cell_at((4, 0, 0))
        with self.assertRaises(IndexError):
            lattice.cell_at((0, 0, -1))

    def test_default_active_layer(self):
        """Test only layer 0 is active by default."""
        lattice = Lattice((2, 3, 2))
        assert lattice.is_active((1, 0, 1))
        assert not lattice.is_active((1, 1, 1))

        everything = Lattice((2, 3, 2), active_layers=None)
        assert np.all(everything.active)

    def test_neighbors_xz(self):
        """Test in-layer face neighbours."""
        lattice = Lattice((3, 2, 3))

        assert lattice.neighbors_face_xz((0, 0, 0)) == [(1, 0, 0), (0, 0, 1)]
        assert lattice.neighbors_face_xz((1, 0, 1)) == [
            (0, 0, 1), (2, 0, 1), (1, 0, 0), (1, 0, 2)
        ]

    def test_neighbors_3d(self):
        """Test face neighbours across layers."""
        lattice = Lattice((3, 3, 3))

        assert len(lattice.neighbors_face_3d((1, 1, 1))) == 6
        assert len(lattice.neighbors_face_3d((1, 0, 1))) == 5
        assert len(lattice.neighbors_face_3d((0, 0, 0))) == 3

    def test_element_counts(self):
        """Test face, edge and corner array dimensions."""
        lattice = Lattice((2, 3, 4))

        assert lattice.faces.shapes == ((3, 3, 4), (2, 4, 4), (2, 3, 5))
        assert lattice.edges.shapes == ((2, 4, 5), (3, 3, 5), (3, 4, 4))
        assert lattice.corners.shapes == ((3, 4, 5),)

        assert len(list(lattice.iter_faces())) == 36 + 32 + 30
        assert len(list(lattice.iter_edges())) == 40 + 45 + 48
        assert len(list(lattice.iter_corners())) == 60

    def test_element_positions(self):
        """Test element centres relative to cell centres."""
        lattice = Lattice((2, 2, 2), origin=(10.0, 0.0, 0.0), cell_size=2.0)

        assert lattice.cell_position((1, 0, 1)) == (12.0, 0.0, 2.0)
        assert lattice.corners.position(0, (0, 0, 0)) == (9.0, -1.0, -1.0)
        assert lattice.faces.position(Axis.X, (0, 0, 0)) == (9.0, 0.0, 0.0)
        assert lattice.edges.position(Axis.X, (0, 0, 0)) == (10.0, -1.0, -1.0)

        with self.assertRaises(OutOfBounds):
            lattice.faces.position(Axis.Y, (0, 3, 0))

    def test_elements_read_only(self):
        """Test derived arrays cannot be mutated."""
        lattice = Lattice((2, 2, 2))
        with self.assertRaises(ValueError):
            lattice.corners.positions[0, 0] = 5.0

    def test_topology(self):
        """Test cells around faces, edges and corners."""
        lattice = Lattice((2, 2, 2))

        assert lattice.face_cells(Axis.X, (0, 0, 0)) == [(0, 0, 0)]
        assert sorted(lattice.face_cells(Axis.X, (1, 0, 0))) == [(0, 0, 0), (1, 0, 0)]
        assert len(lattice.edge_cells(Axis.Y, (1, 0, 1))) == 4
        assert len(lattice.corner_cells((1, 1, 1))) == 8
        assert lattice.corner_cells((0, 0, 0)) == [(0, 0, 0)]

    def test_clear(self):
        """Test clearing all cells and a single state."""
        lattice = Lattice((3, 1, 3))
        lattice.set_state((0, 0, 0), FunctionState.BLACK)
        lattice.set_state((1, 0, 1), FunctionState.RED)
        lattice.set_state((2, 0, 2), FunctionState.RED)

        assert lattice.clear_state(FunctionState.RED) == 2
        assert lattice.get_state((0, 0, 0)) == FunctionState.BLACK
        assert lattice.count_state(FunctionState.RED) == 0

        lattice.clear_all()
        assert lattice.count_state(FunctionState.EMPTY) == 9

    def test_states_read_only(self):
        """Test the state view cannot be written."""
        lattice = Lattice((2, 1, 2))
        with self.assertRaises(ValueError):
            lattice.states[0, 0, 0] = 0


class TestRectangle(unittest.TestCase):
    """Tests for rectangle fill."""

    def test_fill_then_occupied(self):
        """Test painting a 2x2 rectangle twice."""
        lattice = Lattice((4, 1, 4))
        painter = RegionPainter(lattice, seed=0)

        painted = painter.fill_rectangle((0, 0, 0), 2, 2)
        assert sorted(painted) == [(0, 0, 0), (0, 0, 1), (1, 0, 0), (1, 0, 1)]
        assert lattice.count_state(FunctionState.BLACK) == 4

        with self.assertRaises(Occupied):
            painter.fill_rectangle((0, 0, 0), 2, 2)
        assert lattice.count_state(FunctionState.BLACK) == 4

    def test_out_of_bounds_is_atomic(self):
        """Test a rectangle crossing the border paints nothing."""
        lattice = Lattice((4, 1, 4))
        painter = RegionPainter(lattice, seed=0)

        with self.assertRaises(OutOfBounds):
            painter.fill_rectangle((3, 0, 3), 2, 2)
        assert lattice.count_state(FunctionState.BLACK) == 0

    def test_partial_overlap_is_atomic(self):
        """Test a rectangle overlapping a painted cell paints nothing."""
        lattice = Lattice((4, 1, 4))
        lattice.set_state((1, 0, 1), FunctionState.RED)
        painter = RegionPainter(lattice, seed=0)

        with self.assertRaises(Occupied):
            painter.fill_rectangle((0, 0, 0), 3, 3)
        assert lattice.count_state(FunctionState.BLACK) == 0
        assert lattice.count_state(FunctionState.RED) == 1

    def test_invalid_extent(self):
        """Test empty rectangles are rejected."""
        painter = RegionPainter(Lattice((4, 1, 4)), seed=0)
        with self.assertRaises(InvalidArgument):
            painter.fill_rectangle((0, 0, 0), 0, 2)


class TestBlobGrowth(unittest.TestCase):
    """Tests for stochastic blob growth."""

    def _grow(self, seed, origin=(16, 0, 16), radius=6):
        lattice = Lattice((32, 1, 32))
        painter = RegionPainter(lattice, seed=seed)
        try:
            return sorted(painter.grow_blob(origin, radius, picky=True))
        except InsufficientGrowth:
            return None

    def test_regular_blob_scenario(self):
        """Test a non-picky blob near the corner of an 8x8 layer."""
        lattice = Lattice((8, 1, 8))
        painter = RegionPainter(lattice, seed=0)

        claimed = painter.grow_blob((2, 0, 2), 3, picky=False, flat=True)

        assert (2, 0, 2) in claimed
        assert len(claimed) >= 4
        for x, y, z in claimed:
            assert y == 0
            assert abs(x - 2) + abs(z - 2) <= 3
            assert lattice.get_state((x, y, z)) == FunctionState.BLACK

        labels, count = painter.label_regions()
        assert count == 1
        assert labels[2, 2] == 1

    def test_regular_blob_is_diamond(self):
        """Test unobstructed non-picky growth fills the full diamond."""
        lattice = Lattice((32, 1, 32))
        painter = RegionPainter(lattice, seed=0)

        radius = 5
        claimed = painter.grow_blob((16, 0, 16), radius, picky=False)
        assert len(claimed) == 2 * radius * radius + 2 * radius + 1
        assert len(claimed) >= radius

    def test_picky_blob_deterministic(self):
        """Test identical seeds give identical blobs."""
        for seed in range(5):
            assert self._grow(seed) == self._grow(seed)

    def test_picky_blob_smaller_than_diamond(self):
        """Test picky growth on an open layer stops short of the full diamond."""
        radius = 5
        diamond = 2 * radius * radius + 2 * radius + 1
        grown = 0
        for seed in range(10):
            lattice = Lattice((64, 1, 64))
            painter = RegionPainter(lattice, seed=seed)
            try:
                claimed = painter.grow_blob((32, 0, 32), radius, picky=True)
            except InsufficientGrowth:
                continue
            grown += 1
            assert radius <= len(claimed) < diamond
        assert grown > 0

    def test_picky_admission_rate(self):
        """Test about 40% of neighbours are admitted per draw."""
        rng = np.random.default_rng(1234)
        runs = 500
        admitted = 0
        for _ in range(runs):
            lattice = Lattice((3, 1, 3))
            painter = RegionPainter(lattice, rng=rng)
            claimed = painter.grow_blob((1, 0, 1), 1, picky=True)
            admitted += len(claimed) - 1

        fraction = admitted / (4 * runs)
        assert abs(fraction - 0.4) < 0.05

    def test_picky_rejects_below_threshold(self):
        """Test draws under the reject probability skip every neighbour."""

        class FixedDraw:
            def __init__(self, value):
                self.value = value

            def random(self):
                return self.value

        lattice = Lattice((16, 1, 16))
        painter = RegionPainter(lattice, rng=FixedDraw(0.5))
        with self.assertRaises(InsufficientGrowth):
            painter.grow_blob((8, 0, 8), 3, picky=True)
        assert lattice.count_state(FunctionState.BLACK) == 0

        painter = RegionPainter(lattice, rng=FixedDraw(0.7))
        claimed = painter.grow_blob((8, 0, 8), 3, picky=True)
        assert len(claimed) == 2 * 3 * 3 + 2 * 3 + 1

    def test_picky_blob_connected(self):
        """Test picky blobs that succeed are one connected region."""
        for seed in range(10):
            lattice = Lattice((32, 1, 32))
            painter = RegionPainter(lattice, seed=seed)
            try:
                claimed = painter.grow_blob((16, 0, 16), 4, picky=True)
            except InsufficientGrowth:
                assert lattice.count_state(FunctionState.BLACK) == 0
                continue
            assert len(claimed) >= 4
            _, count = painter.label_regions()
            assert count == 1

    def test_insufficient_growth_unchanged(self):
        """Test a blob that cannot reach its radius paints nothing."""
        lattice = Lattice((1, 1, 1))
        painter = RegionPainter(lattice, seed=0)

        with self.assertRaises(InsufficientGrowth):
            painter.grow_blob((0, 0, 0), 2, picky=False)
        assert lattice.count_state(FunctionState.BLACK) == 0

    def test_origin_out_of_bounds(self):
        """Test an origin outside the lattice is rejected."""
        painter = RegionPainter(Lattice((4, 1, 4)), seed=0)
        with self.assertRaises(OutOfBounds):
            painter.grow_blob((4, 0, 0), 2)

    def test_skips_painted_cells(self):
        """Test growth does not claim cells that are already painted."""
        lattice = Lattice((5, 1, 5))
        lattice.set_state((3, 0, 2), FunctionState.BLACK)
        painter = RegionPainter(lattice, seed=0)

        claimed = painter.grow_blob((2, 0, 2), 1, picky=False)
        assert (3, 0, 2) not in claimed
        assert len(claimed) == 4

    def test_skips_inactive_cells(self):
        """Test 3D growth stays on active layers."""
        lattice = Lattice((5, 2, 5))
        painter = RegionPainter(lattice, seed=0)

        claimed = painter.grow_blob((2, 0, 2), 2, picky=False, flat=False)
        assert all(y == 0 for _, y, _ in claimed)

    def test_grows_across_layers(self):
        """Test 3D growth with every layer active."""
        lattice = Lattice((5, 3, 5), active_layers=None)
        painter = RegionPainter(lattice, seed=0)

        claimed = painter.grow_blob((2, 1, 2), 1, picky=False, flat=False)
        assert len(claimed) == 7

    def test_scatter_blobs(self):
        """Test scattering is reproducible and paints every blob."""
        results = []
        for _ in range(2):
            lattice = Lattice((32, 1, 32))
            painter = RegionPainter(lattice, seed=42)
            blobs = painter.scatter_blobs(3, 3, 6)
            assert len(blobs) == 3
            assert all(len(b) >= 3 for b in blobs)
            results.append(lattice.layer_states(0))

        assert np.array_equal(results[0], results[1])
        assert np.count_nonzero(results[0] == int(FunctionState.BLACK)) >= 3

    def test_scatter_gives_up(self):
        """Test scattering fails when no blob can grow."""
        painter = RegionPainter(Lattice((2, 1, 2)), seed=0)
        with self.assertRaises(InsufficientGrowth):
            painter.scatter_blobs(1, 10, 11, max_attempts=5)

    def test_label_regions(self):
        """Test separate rectangles are separate regions."""
        lattice = Lattice((8, 1, 8))
        painter = RegionPainter(lattice, seed=0)
        painter.fill_rectangle((0, 0, 0), 2, 2)
        painter.fill_rectangle((5, 0, 5), 2, 2)

        _, count = painter.label_regions()
        assert count == 2


if __name__ == "__main__":
    unittest.main(verbosity=2)
