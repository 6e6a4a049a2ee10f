"""
Session Defaults
================
Central registry of the constants the interactive session and the dataset
generator start from. Every value can be overridden through SessionConfig
keyword arguments or the matching CLI flag.
"""

from dataclasses import dataclass
from typing import Tuple


# Global Constants
DEFAULT_GRID_SIZE: Tuple[int, int, int] = (64, 10, 64)
DEFAULT_SEED: int = 666
DEFAULT_BLOB_RADIUS: int = 10

# Chance that a picky blob skips a neighbour in a given round
PICKY_REJECT_PROBABILITY: float = 0.6

MODEL_RESOLUTION: int = 256
MODEL_CHANNELS: int = 3

# Letterbox fill for images fed to the model (mid grey)
FILL_COLOR: Tuple[float, float, float] = (0.5, 0.5, 0.5)

DATASET_PREFIX: str = "Grid"


@dataclass
class SessionConfig:
    """
    Parameters for a StoneSession.

    Attributes:
        grid_size: Lattice dimensions (x, y, z)
        origin: World position of cell (0, 0, 0)
        cell_size: Edge length of one cell in world units
        seed: Seed of the session random generator
        blob_radius: Radius used when a cell is picked
        model_resolution: Square input size of the model
        fill_color: Letterbox fill for model input images
    """

    grid_size: Tuple[int, int, int] = DEFAULT_GRID_SIZE
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    cell_size: float = 1.0
    seed: int = DEFAULT_SEED
    blob_radius: int = DEFAULT_BLOB_RADIUS
    model_resolution: int = MODEL_RESOLUTION
    fill_color: Tuple[float, float, float] = FILL_COLOR
