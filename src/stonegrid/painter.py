"""
Region Painting

Mutators of lattice cell state:
1. Rectangle fill - deterministic, all-or-nothing
2. Blob growth - randomized breadth-first expansion from a seed cell
3. Stone scattering - repeated blob growth at random origins

Blob Growth Background:
Every round expands each claimed cell to its face neighbours. A "picky"
blob rejects each neighbour with probability 0.6, drawn afresh every round,
so a cell skipped now may still be taken later from another side. The result
is an irregular, stone-like silhouette instead of a filled diamond.
"""

from typing import List, Optional, Sequence, Set, Tuple
import logging
import numpy as np
from scipy import ndimage

from .config import PICKY_REJECT_PROBABILITY
from .errors import InsufficientGrowth, InvalidArgument, Occupied, OutOfBounds
from .lattice import Index, Lattice, as_index
from .states import FunctionState

logger = logging.getLogger(__name__)


class RegionPainter:
    """
    Paints connected regions onto a Lattice.

    All random draws come from one generator, so a run is reproducible
    from its seed and the sequence of calls.

    Attributes:
        lattice: The lattice being painted
        rng: Session random generator
        reject_probability: Per-neighbour, per-round rejection chance of
            picky blobs
    """

    def __init__(
        self,
        lattice: Lattice,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        reject_probability: float = PICKY_REJECT_PROBABILITY
    ):
        """
        Initialize the painter.

        Args:
            lattice: Lattice to paint on
            rng: Shared random generator; created from ``seed`` if None
            seed: Seed used when no generator is given
            reject_probability: Rejection chance for picky growth
        """
        self.lattice = lattice
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.reject_probability = reject_probability

    def fill_rectangle(
        self,
        origin: Sequence[int],
        width: int,
        depth: int,
        layer: int = 0,
        state: FunctionState = FunctionState.BLACK
    ) -> List[Index]:
        """
        Paint a width x depth rectangle on one layer.

        Every target is validated first; nothing is painted unless all of
        them are in bounds and EMPTY.

        Args:
            origin: Index whose x and z give the rectangle corner
            width: Extent in X
            depth: Extent in Z
            layer: Y layer to paint
            state: State to paint

        Returns:
            Painted indices

        Raises:
            InvalidArgument: If width or depth is not positive
            OutOfBounds: If any target is outside the lattice
            Occupied: If any target is not EMPTY
        """
        if width <= 0 or depth <= 0:
            raise InvalidArgument(f"Rectangle extent must be positive, got {width}x{depth}")

        ox, _, oz = as_index(origin)
        targets = []

        for x in range(ox, ox + width):
            for z in range(oz, oz + depth):
                index = (x, layer, z)
                if not self.lattice.in_bounds(index):
                    raise OutOfBounds(f"Rectangle cell {index} outside lattice")
                if self.lattice.get_state(index) != FunctionState.EMPTY:
                    raise Occupied(f"Rectangle cell {index} is already painted")
                targets.append(index)

        self.lattice.paint(targets, state)
        return targets

    def grow_blob(
        self,
        origin: Sequence[int],
        radius: int,
        picky: bool = True,
        flat: bool = True
    ) -> List[Index]:
        """
        Grow a BLACK blob from ``origin``.

        Runs ``radius`` breadth-first rounds. Cells admitted in a round are
        only expanded from in the next one. Growth stops early when a round
        admits nothing.

        Args:
            origin: Seed cell index
            radius: Number of growth rounds, also the minimum blob size
            picky: If True, skip neighbours at random
            flat: If True, grow within the origin's layer only

        Returns:
            Claimed indices in claim order, origin first

        Raises:
            OutOfBounds: If origin is outside the lattice
            InsufficientGrowth: If fewer than ``radius`` cells were claimed;
                no cell is painted in that case
        """
        if radius < 0:
            raise InvalidArgument(f"Radius must be non-negative, got {radius}")

        origin = as_index(origin)
        if not self.lattice.in_bounds(origin):
            raise OutOfBounds(f"Blob origin {origin} outside lattice")

        if flat:
            neighbors_of = self.lattice.neighbors_face_xz
        else:
            neighbors_of = self.lattice.neighbors_face_3d

        claimed: List[Index] = [origin]
        claimed_set: Set[Index] = {origin}

        for _ in range(radius):
            admitted: List[Index] = []
            admitted_set: Set[Index] = set()

            for cell in claimed:
                for neighbor in neighbors_of(cell):
                    if picky and self.rng.random() < self.reject_probability:
                        continue
                    if (
                        self.lattice.is_active(neighbor)
                        and self.lattice.get_state(neighbor) == FunctionState.EMPTY
                        and neighbor not in claimed_set
                        and neighbor not in admitted_set
                    ):
                        admitted.append(neighbor)
                        admitted_set.add(neighbor)

            if not admitted:
                break

            claimed.extend(admitted)
            claimed_set.update(admitted_set)

        if len(claimed) < radius:
            logger.debug(
                "Blob at %s claimed %d cells, needs %d", origin, len(claimed), radius
            )
            raise InsufficientGrowth(
                f"Blob at {origin} claimed {len(claimed)} cells, fewer than radius {radius}"
            )

        self.lattice.paint(claimed, FunctionState.BLACK)
        return claimed

    def draw_range(self, low: int, high: int) -> int:
        """Integer in [low, high); ``low`` when the range is empty."""
        if high <= low:
            return low
        return int(self.rng.integers(low, high))

    def scatter_blobs(
        self,
        count: int,
        min_radius: int,
        max_radius: int,
        picky: bool = True,
        layer: int = 0,
        max_attempts: int = 1000
    ) -> List[List[Index]]:
        """
        Grow ``count`` blobs at random origins on one layer.

        Each blob re-samples its origin and radius until growth succeeds.

        Args:
            count: Number of blobs
            min_radius: Smallest radius (inclusive)
            max_radius: Largest radius (exclusive)
            picky: Passed to grow_blob
            layer: Y layer of the origins
            max_attempts: Attempts per blob before giving up

        Returns:
            Claimed indices of each blob

        Raises:
            InsufficientGrowth: If a blob fails ``max_attempts`` times
        """
        size_x, _, size_z = self.lattice.size
        blobs = []

        for n in range(count):
            for attempt in range(max_attempts):
                x = self.draw_range(0, size_x)
                z = self.draw_range(0, size_z)
                radius = self.draw_range(min_radius, max_radius)
                try:
                    blobs.append(self.grow_blob((x, layer, z), radius, picky=picky))
                    break
                except InsufficientGrowth:
                    continue
            else:
                raise InsufficientGrowth(
                    f"Blob {n} failed to grow after {max_attempts} attempts"
                )
            logger.debug("Blob %d grew %d cells after %d attempts", n, len(blobs[-1]), attempt + 1)

        return blobs

    def label_regions(
        self,
        layer: int = 0,
        state: FunctionState = FunctionState.BLACK
    ) -> Tuple[np.ndarray, int]:
        """
        Label 4-connected regions of ``state`` on one layer.

        Args:
            layer: Y layer
            state: State forming the regions

        Returns:
            Tuple of (labels, count) where labels has shape (size.x, size.z),
            0 for background and 1..count for regions
        """
        mask = self.lattice.layer_states(layer) == int(FunctionState(state))
        labels, count = ndimage.label(mask)
        return labels, int(count)
