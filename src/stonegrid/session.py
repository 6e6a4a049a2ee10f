"""
Stone Session

This is the primary interface for the paint -> infer loop.
It orchestrates:
1. Blob painting on the base layer
2. Rasterization and letterboxing to the model resolution
3. Inference
4. Writing inferred marks back into the lattice

plus a batch generator that writes random stone layouts as training images.

Example Usage:
    session = StoneSession(model=my_model)
    session.pick((12, 0, 30))
    for position, rgba in session.render_items():
        draw_cube(position, rgba)
"""

from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union
import logging
import time
import numpy as np

from .codec import GridCodec, save_image
from .config import DATASET_PREFIX, SessionConfig
from .errors import InsufficientGrowth
from .inference import InferenceAdapter, Model
from .lattice import Lattice
from .painter import RegionPainter
from .states import VOID_MARKER, FunctionState, state_color

logger = logging.getLogger(__name__)


class StoneSession:
    """
    One interactive session over a single lattice.

    Holds the lattice, the session random generator (seeded once) and the
    components that act on them. Calls are expected to be serialized.

    Attributes:
        config: Session parameters
        lattice: The cell lattice
        rng: Session random generator
        painter: Region painter sharing ``rng``
        codec: Grid/image codec
        adapter: Inference adapter
        show_voids: Whether render_items() yields void markers
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        model: Optional[Model] = None
    ):
        """
        Initialize the session.

        Args:
            config: Session parameters (default: SessionConfig())
            model: Inference callable; needed by predict_and_update()
        """
        self.config = config or SessionConfig()

        self.lattice = Lattice(
            self.config.grid_size,
            origin=self.config.origin,
            cell_size=self.config.cell_size,
        )
        self.rng = np.random.default_rng(self.config.seed)
        self.painter = RegionPainter(self.lattice, rng=self.rng)
        self.codec = GridCodec(self.config.model_resolution, self.config.fill_color)
        self.adapter = InferenceAdapter(model, self.config.model_resolution)
        self.show_voids = True

    def pick(self, index: Sequence[int]) -> bool:
        """
        Grow a stone at a picked cell and run one inference pass.

        Inference runs whether or not the stone grew.

        Args:
            index: Picked cell index

        Returns:
            True if the stone was painted
        """
        try:
            self.painter.grow_blob(index, self.config.blob_radius, picky=True, flat=True)
            grown = True
        except InsufficientGrowth as e:
            logger.info("No stone painted: %s", e)
            grown = False

        self.predict_and_update()
        return grown

    def predict_and_update(self, all_layers: bool = False) -> int:
        """
        Replace the inferred RED marks with a fresh prediction.

        Args:
            all_layers: If True, run every layer instead of layer 0 only

        Returns:
            Number of cells marked RED
        """
        self.lattice.clear_state(FunctionState.RED)

        size_x, size_y, size_z = self.lattice.size
        layer_count = size_y if all_layers else 1
        marked = 0

        for layer in range(layer_count):
            grid_image = self.codec.rasterize(self.lattice, layer=layer)
            model_image = self.codec.resize(grid_image)
            predicted = self.adapter.predict(model_image)
            restored = self.codec.restore(predicted, (size_x, size_z))
            marked += self.codec.apply_inferred(self.lattice, restored, layer=layer)

        return marked

    def clear(self):
        """Reset every cell to EMPTY."""
        self.lattice.clear_all()

    def toggle_voids(self) -> bool:
        """Flip void marker display and return the new setting."""
        self.show_voids = not self.show_voids
        return self.show_voids

    def render_items(self) -> Iterator[Tuple[Tuple[float, float, float], Tuple[float, ...]]]:
        """
        Describe what to draw for each active cell.

        Yields:
            Tuples of (world position, rgba). EMPTY cells yield a void
            marker on layer 0 while show_voids is set, and nothing otherwise.
        """
        for cell in self.lattice.iter_cells():
            if not cell.active:
                continue
            if cell.state != FunctionState.EMPTY:
                yield self.lattice.cell_position(cell.index), state_color(cell.state)
            elif self.show_voids and cell.index[1] == 0:
                yield self.lattice.cell_position(cell.index), VOID_MARKER

    def preview(self) -> dict:
        """
        Get a summary of the current state.

        Returns:
            Dictionary with grid size and per-state cell counts
        """
        info = {
            "grid_size": self.lattice.size,
            "model_attached": self.adapter.available,
        }
        for state in FunctionState:
            if state != FunctionState.EMPTY:
                info[state.name.lower()] = self.lattice.count_state(state)
        return info


class DatasetGenerator:
    """
    Batch writer of random stone layouts.

    Each sample is a fresh set of picky blobs on layer 0, rasterized with
    transparency and letterboxed to the model resolution.
    """

    def __init__(self, session: Optional[StoneSession] = None, prefix: str = DATASET_PREFIX):
        """
        Initialize the generator.

        Args:
            session: Session whose lattice and generator are used
            prefix: File name prefix of the samples
        """
        self.session = session or StoneSession()
        self.prefix = prefix

    def generate(
        self,
        sample_size: int,
        min_amount: int,
        max_amount: int,
        min_radius: int,
        max_radius: int,
        output_dir: Union[str, Path],
        picky: bool = True
    ) -> List[Path]:
        """
        Write ``sample_size`` random layouts as PNG images.

        Args:
            sample_size: Number of images
            min_amount: Fewest stones per image (inclusive)
            max_amount: Most stones per image (exclusive)
            min_radius: Smallest stone radius (inclusive)
            max_radius: Largest stone radius (exclusive)
            output_dir: Output directory
            picky: Grow irregular stones

        Returns:
            List of written paths
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        session = self.session
        outputs = []
        start_time = time.time()

        for i in range(sample_size):
            amount = session.painter.draw_range(min_amount, max_amount)

            session.clear()
            session.painter.scatter_blobs(amount, min_radius, max_radius, picky=picky)

            grid_image = session.codec.rasterize(session.lattice, include_alpha=True)
            resized = session.codec.resize(grid_image)

            outputs.append(save_image(resized, output_dir / f"{self.prefix}_{i}.png"))
            logger.debug("Sample %d: %d stones", i, amount)

        elapsed = time.time() - start_time
        logger.info("Generated %d images in %.2fs", sample_size, elapsed)

        return outputs
