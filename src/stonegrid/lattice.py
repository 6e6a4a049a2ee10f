"""
Voxel Lattice Data Structures

This module provides:
- Lattice: Dense 3D grid of cells with per-cell state and activity flags
- ElementArena: Read-only positions of the faces, edges and corners shared
  between cells, stored per axis family in one flat buffer

Cells are not objects. State and activity live in two numpy arrays indexed
[x, y, z]; cell_at() returns a Cell snapshot. Neighbour and topology queries
are methods of the Lattice, so nothing holds a reference back to it.

Element shapes for a lattice of size (X, Y, Z):
- Faces, axis a:   size + 1 along a            e.g. X faces: (X+1, Y, Z)
- Edges, axis a:   size + 1 along the other two e.g. X edges: (X, Y+1, Z+1)
- Corners:         size + 1 on every axis
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple
import logging
import numpy as np

from .errors import InvalidArgument, OutOfBounds
from .states import FunctionState

logger = logging.getLogger(__name__)

Index = Tuple[int, int, int]

_UNIT = (
    np.array([1, 0, 0]),
    np.array([0, 1, 0]),
    np.array([0, 0, 1]),
)


class Axis(IntEnum):
    """Lattice axes."""
    X = 0
    Y = 1
    Z = 2


class Cell(NamedTuple):
    """Snapshot of a single cell."""
    index: Index
    active: bool
    state: FunctionState


class Face(NamedTuple):
    """Face between two cells adjacent along ``axis``."""
    axis: Axis
    index: Index
    position: Tuple[float, float, float]


class Edge(NamedTuple):
    """Edge running along ``axis``, shared by up to four cells."""
    axis: Axis
    index: Index
    position: Tuple[float, float, float]


class Corner(NamedTuple):
    """Corner shared by up to eight cells."""
    index: Index
    position: Tuple[float, float, float]


def as_index(index: Sequence[int]) -> Index:
    """Coerce a 3-sequence (tuple, list, numpy row) of integers to an int tuple."""
    try:
        components = list(index)
    except TypeError:
        raise InvalidArgument(f"Index must be a sequence, got {index!r}") from None
    if len(components) != 3:
        raise InvalidArgument(f"Index must have 3 components, got {index!r}")

    result = []
    for c in components:
        try:
            value = int(c)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Index components must be integers, got {index!r}") from None
        if value != c:
            raise InvalidArgument(f"Index components must be integers, got {index!r}")
        result.append(value)
    return tuple(result)


class ElementArena:
    """
    Indexed arena for one element family (faces, edges or corners).

    Each axis family has its own bounds. Positions of all families are
    concatenated into a single (N, 3) buffer, and an element is addressed
    by (axis, x, y, z) through a per-axis offset into that buffer. The
    buffer is built once and marked read-only.
    """

    def __init__(
        self,
        shapes: Sequence[Index],
        offsets: Sequence[np.ndarray],
        origin: np.ndarray,
        cell_size: float
    ):
        """
        Build element positions.

        Args:
            shapes: Bounds of each axis family
            offsets: Position offset (in cells) of each family's elements
                relative to the cell with the same index
            origin: World position of cell (0, 0, 0)
            cell_size: Edge length of one cell
        """
        self.shapes: Tuple[Index, ...] = tuple(tuple(int(n) for n in s) for s in shapes)

        starts = [0]
        blocks = []
        for shape, offset in zip(self.shapes, offsets):
            # np.indices flattens in C order: x outermost, z innermost
            idx = np.indices(shape).reshape(3, -1).T
            blocks.append(origin + (idx + offset) * cell_size)
            starts.append(starts[-1] + idx.shape[0])

        self._starts = tuple(starts)
        self._positions = np.concatenate(blocks).astype(np.float64)
        self._positions.flags.writeable = False

    def __len__(self) -> int:
        return self._starts[-1]

    @property
    def positions(self) -> np.ndarray:
        """Read-only (N, 3) array of element centre positions."""
        return self._positions

    def in_bounds(self, axis: int, index: Index) -> bool:
        """Check whether (axis, index) addresses an element."""
        if not 0 <= axis < len(self.shapes):
            return False
        shape = self.shapes[axis]
        return all(0 <= i < n for i, n in zip(index, shape))

    def flat_index(self, axis: int, index: Sequence[int]) -> int:
        """
        Address an element in the flat buffer.

        Raises:
            OutOfBounds: If the element does not exist
        """
        index = as_index(index)
        if not self.in_bounds(axis, index):
            raise OutOfBounds(f"Element {index} outside family {axis} bounds")
        _, sy, sz = self.shapes[axis]
        x, y, z = index
        return self._starts[axis] + (x * sy + y) * sz + z

    def position(self, axis: int, index: Sequence[int]) -> Tuple[float, float, float]:
        """World position of one element."""
        p = self._positions[self.flat_index(axis, index)]
        return (float(p[0]), float(p[1]), float(p[2]))

    def iterate(self) -> Iterator[Tuple[int, Index, Tuple[float, float, float]]]:
        """
        Iterate over all elements, family by family.

        Yields:
            Tuples of (axis, index, position)
        """
        for axis, shape in enumerate(self.shapes):
            start = self._starts[axis]
            for n, (x, y, z) in enumerate(np.ndindex(*shape)):
                p = self._positions[start + n]
                yield axis, (x, y, z), (float(p[0]), float(p[1]), float(p[2]))


@dataclass(eq=False)
class Lattice:
    """
    Dense 3D lattice of cells with derived faces, edges and corners.

    Coordinate system: X-right, Y-up (layers), Z-forward. Layer y=0 is the
    only active layer unless ``active_layers`` says otherwise; pass None to
    activate every layer.
    """

    size: Tuple[int, int, int]
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    cell_size: float = 1.0
    active_layers: Optional[Iterable[int]] = (0,)
    _states: np.ndarray = field(init=False, repr=False)
    _active: np.ndarray = field(init=False, repr=False)
    _faces: ElementArena = field(init=False, repr=False)
    _edges: ElementArena = field(init=False, repr=False)
    _corners: ElementArena = field(init=False, repr=False)

    def __post_init__(self):
        """Allocate cell arrays and derive element arenas."""
        try:
            self.size = as_index(self.size)
        except InvalidArgument:
            raise InvalidArgument(
                f"Lattice size must be 3 positive integers, got {self.size!r}"
            ) from None
        if any(n <= 0 for n in self.size):
            raise InvalidArgument(f"Lattice dimensions must be positive, got {self.size}")
        if self.cell_size <= 0:
            raise InvalidArgument(f"Cell size must be positive, got {self.cell_size}")
        self.origin = tuple(float(c) for c in self.origin)

        self._states = np.full(self.size, int(FunctionState.EMPTY), dtype=np.int8)
        self._active = np.zeros(self.size, dtype=bool)
        if self.active_layers is None:
            self._active[:] = True
        else:
            for layer in self.active_layers:
                self._check_layer(layer)
                self._active[:, layer, :] = True

        self._make_elements()
        logger.debug(
            "Created lattice %s with %d faces, %d edges, %d corners",
            self.size, len(self._faces), len(self._edges), len(self._corners)
        )

    def _make_elements(self):
        """Derive the face, edge and corner arenas from the cell geometry."""
        size = np.array(self.size)
        origin = np.array(self.origin, dtype=np.float64)
        half = np.full(3, -0.5)

        self._faces = ElementArena(
            [tuple(size + _UNIT[a]) for a in Axis],
            [-0.5 * _UNIT[a] for a in Axis],
            origin,
            self.cell_size,
        )
        self._edges = ElementArena(
            [tuple(size + 1 - _UNIT[a]) for a in Axis],
            [half + 0.5 * _UNIT[a] for a in Axis],
            origin,
            self.cell_size,
        )
        self._corners = ElementArena(
            [tuple(size + 1)],
            [half],
            origin,
            self.cell_size,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def volume(self) -> int:
        """Total number of cells."""
        return int(np.prod(self.size))

    @property
    def states(self) -> np.ndarray:
        """Read-only view of the state codes, indexed [x, y, z]."""
        view = self._states.view()
        view.flags.writeable = False
        return view

    @property
    def active(self) -> np.ndarray:
        """Read-only view of the activity mask, indexed [x, y, z]."""
        view = self._active.view()
        view.flags.writeable = False
        return view

    @property
    def faces(self) -> ElementArena:
        return self._faces

    @property
    def edges(self) -> ElementArena:
        return self._edges

    @property
    def corners(self) -> ElementArena:
        return self._corners

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def in_bounds(self, index: Sequence[int]) -> bool:
        """Check if an index is within grid bounds."""
        x, y, z = as_index(index)
        sx, sy, sz = self.size
        return 0 <= x < sx and 0 <= y < sy and 0 <= z < sz

    def _check(self, index: Sequence[int]) -> Index:
        index = as_index(index)
        if not self.in_bounds(index):
            raise OutOfBounds(f"Index {index} outside lattice of size {self.size}")
        return index

    def _check_layer(self, layer: int):
        if not 0 <= layer < self.size[1]:
            raise OutOfBounds(f"Layer {layer} outside [0, {self.size[1]})")

    def cell_at(self, index: Sequence[int]) -> Cell:
        """
        Get a snapshot of the cell at ``index``.

        Raises:
            OutOfBounds: If the index is outside the grid
        """
        index = self._check(index)
        return Cell(
            index,
            bool(self._active[index]),
            FunctionState(int(self._states[index])),
        )

    def get_state(self, index: Sequence[int]) -> FunctionState:
        """Get the state of one cell."""
        return FunctionState(int(self._states[self._check(index)]))

    def set_state(self, index: Sequence[int], state: FunctionState):
        """Set the state of one cell."""
        self._states[self._check(index)] = int(FunctionState(state))

    def paint(self, indices: Iterable[Sequence[int]], state: FunctionState):
        """
        Set the state of many cells.

        All indices are validated before any cell is written.
        """
        checked = [self._check(i) for i in indices]
        code = int(FunctionState(state))
        for index in checked:
            self._states[index] = code

    def mark_layer(self, layer: int, mask: np.ndarray, state: FunctionState) -> int:
        """
        Set ``state`` on every cell of a layer where ``mask`` is True.

        Args:
            layer: Y layer
            mask: Boolean array of shape (size.x, size.z)
            state: State to write

        Returns:
            Number of cells written
        """
        self._check_layer(layer)
        if mask.shape != (self.size[0], self.size[2]):
            raise InvalidArgument(
                f"Mask shape {mask.shape} doesn't match layer shape "
                f"{(self.size[0], self.size[2])}"
            )
        self._states[:, layer, :][mask] = int(FunctionState(state))
        return int(np.count_nonzero(mask))

    def layer_states(self, layer: int) -> np.ndarray:
        """Copy of one layer's state codes, shape (size.x, size.z)."""
        self._check_layer(layer)
        return self._states[:, layer, :].copy()

    def is_active(self, index: Sequence[int]) -> bool:
        """Check if a cell participates in growth and display."""
        return bool(self._active[self._check(index)])

    def set_active(self, index: Sequence[int], active: bool = True):
        """Toggle whether a cell participates in growth and display."""
        self._active[self._check(index)] = active

    def cell_position(self, index: Sequence[int]) -> Tuple[float, float, float]:
        """World position of a cell centre: ``index * cell_size + origin``."""
        index = self._check(index)
        return tuple(float(i * self.cell_size + o) for i, o in zip(index, self.origin))

    def count_state(self, state: FunctionState) -> int:
        """Count the cells holding ``state``."""
        return int(np.count_nonzero(self._states == int(FunctionState(state))))

    # ------------------------------------------------------------------
    # Neighbours and topology
    # ------------------------------------------------------------------

    def _offset_neighbors(self, index: Sequence[int], axes: Sequence[int]) -> List[Index]:
        index = as_index(index)
        neighbors = []
        for axis in axes:
            for step in (-1, 1):
                n = list(index)
                n[axis] += step
                n = tuple(n)
                if self.in_bounds(n):
                    neighbors.append(n)
        return neighbors

    def neighbors_face_xz(self, index: Sequence[int]) -> List[Index]:
        """
        Face neighbours in the same Y layer.

        Returns:
            Up to 4 indices, ordered -X, +X, -Z, +Z
        """
        return self._offset_neighbors(index, (Axis.X, Axis.Z))

    def neighbors_face_3d(self, index: Sequence[int]) -> List[Index]:
        """
        Face neighbours in all three axes.

        Returns:
            Up to 6 indices, ordered -X, +X, -Y, +Y, -Z, +Z
        """
        return self._offset_neighbors(index, (Axis.X, Axis.Y, Axis.Z))

    def _cells_around(self, index: Index, axes: Sequence[int]) -> List[Index]:
        """Cells at ``index`` minus every 0/1 combination along ``axes``."""
        cells = [index]
        for axis in axes:
            cells = cells + [
                tuple(c - (1 if a == axis else 0) for a, c in enumerate(cell))
                for cell in cells
            ]
        return [c for c in cells if self.in_bounds(c)]

    def face_cells(self, axis: int, index: Sequence[int]) -> List[Index]:
        """The (up to 2) cells separated by a face."""
        index = as_index(index)
        self._faces.flat_index(axis, index)
        return self._cells_around(index, (axis,))

    def edge_cells(self, axis: int, index: Sequence[int]) -> List[Index]:
        """The (up to 4) cells sharing an edge."""
        index = as_index(index)
        self._edges.flat_index(axis, index)
        return self._cells_around(index, [a for a in Axis if a != axis])

    def corner_cells(self, index: Sequence[int]) -> List[Index]:
        """The (up to 8) cells sharing a corner."""
        index = as_index(index)
        self._corners.flat_index(0, index)
        return self._cells_around(index, tuple(Axis))

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def iter_cells(self) -> Iterator[Cell]:
        """
        Iterate over all cells in x, then y, then z order.

        Yields:
            Cell snapshots
        """
        for x, y, z in np.ndindex(*self.size):
            yield Cell(
                (x, y, z),
                bool(self._active[x, y, z]),
                FunctionState(int(self._states[x, y, z])),
            )

    def iter_faces(self) -> Iterator[Face]:
        """Iterate over all faces: X family, then Y, then Z."""
        for axis, index, position in self._faces.iterate():
            yield Face(Axis(axis), index, position)

    def iter_edges(self) -> Iterator[Edge]:
        """Iterate over all edges: X family, then Y, then Z."""
        for axis, index, position in self._edges.iterate():
            yield Edge(Axis(axis), index, position)

    def iter_corners(self) -> Iterator[Corner]:
        """Iterate over all corners in x, then y, then z order."""
        for _, index, position in self._corners.iterate():
            yield Corner(index, position)

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    def clear_all(self):
        """Reset every cell to EMPTY."""
        self._states.fill(int(FunctionState.EMPTY))

    def clear_state(self, target: FunctionState) -> int:
        """
        Reset cells holding ``target`` to EMPTY.

        Returns:
            Number of cells cleared
        """
        mask = self._states == int(FunctionState(target))
        self._states[mask] = int(FunctionState.EMPTY)
        return int(np.count_nonzero(mask))
