"""
Cell States and Color Palette

Every cell carries one FunctionState: a closed set of semantic classes that
double as color codes. The palette below is shared by rasterization, the
visualization feed and the dataset writer, so an image written by one can be
read back by the other.

Palette (RGB, floats in [0, 1]):
- BLACK   (0, 0, 0)   user-painted stones
- RED     (1, 0, 0)   marks inferred by the model
- YELLOW  (1, 1, 0)
- GREEN   (0, 1, 0)
- CYAN    (0, 1, 1)
- MAGENTA (1, 0, 1)
- BLUE    (0, 0, 1)
- EMPTY   (1, 1, 1) with alpha 0 when transparency is requested
"""

from enum import IntEnum
from typing import Tuple
import numpy as np


class FunctionState(IntEnum):
    """Semantic class of a cell."""
    EMPTY = -1
    BLACK = 0
    RED = 1
    YELLOW = 2
    GREEN = 3
    CYAN = 4
    MAGENTA = 5
    BLUE = 6


PALETTE = {
    FunctionState.BLACK: (0.0, 0.0, 0.0, 1.0),
    FunctionState.RED: (1.0, 0.0, 0.0, 1.0),
    FunctionState.YELLOW: (1.0, 1.0, 0.0, 1.0),
    FunctionState.GREEN: (0.0, 1.0, 0.0, 1.0),
    FunctionState.CYAN: (0.0, 1.0, 1.0, 1.0),
    FunctionState.MAGENTA: (1.0, 0.0, 1.0, 1.0),
    FunctionState.BLUE: (0.0, 0.0, 1.0, 1.0),
    FunctionState.EMPTY: (1.0, 1.0, 1.0, 0.0),
}

# Translucent marker drawn for empty cells on the base layer
VOID_MARKER: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 0.25)


def state_color(state: FunctionState, include_alpha: bool = True) -> Tuple[float, ...]:
    """
    Look up the palette color of a state.

    Args:
        state: Cell state
        include_alpha: If False, return RGB only

    Returns:
        RGBA (or RGB) tuple of floats in [0, 1]
    """
    rgba = PALETTE[FunctionState(state)]
    return rgba if include_alpha else rgba[:3]


def palette_lut() -> np.ndarray:
    """
    Build a lookup table indexed by ``state + 1``.

    Offsetting by one lets EMPTY (-1) sit at row 0 so a whole state array
    can be colored with a single fancy-index.

    Returns:
        Array of shape (len(FunctionState), 4), float32 RGBA
    """
    lut = np.zeros((len(FunctionState), 4), dtype=np.float32)
    for state, rgba in PALETTE.items():
        lut[int(state) + 1] = rgba
    return lut
