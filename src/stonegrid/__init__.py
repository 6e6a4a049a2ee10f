"""
stonegrid
=========

Procedural stone layouts on a voxel lattice, round-tripped through an
image-to-image translation model.

This package paints connected "stone" regions onto a discrete grid, encodes
grid layers as color-coded images, runs them through a pix2pix-style model and
reads the model's marks back into the grid.

Key Features:
- Dense voxel lattice with face/edge/corner arenas and neighbour queries
- Randomized breadth-first blob growth for irregular stone silhouettes
- Palette rasterization and letterboxing with nearest-neighbor resizing
- Model adapter handling the [0, 1] <-> [-1, 1] tensor ranges
- Batch generation of PNG training data

Example Usage:
    from stonegrid import StoneSession

    session = StoneSession(model=my_model)
    session.pick((20, 0, 31))
    print(session.preview())
"""

__version__ = "1.0.0"
__author__ = "stonegrid Team"

from .states import FunctionState, PALETTE
from .errors import (
    StoneGridError,
    InvalidArgument,
    OutOfBounds,
    Occupied,
    InsufficientGrowth,
    ModelUnavailable,
)
from .lattice import Lattice, Cell
from .painter import RegionPainter
from .codec import GridCodec, save_image, load_image
from .inference import InferenceAdapter, IdentityModel, normalise
from .config import SessionConfig
from .session import StoneSession, DatasetGenerator

__all__ = [
    "FunctionState",
    "PALETTE",
    "StoneGridError",
    "InvalidArgument",
    "OutOfBounds",
    "Occupied",
    "InsufficientGrowth",
    "ModelUnavailable",
    "Lattice",
    "Cell",
    "RegionPainter",
    "GridCodec",
    "save_image",
    "load_image",
    "InferenceAdapter",
    "IdentityModel",
    "normalise",
    "SessionConfig",
    "StoneSession",
    "DatasetGenerator",
]
