"""
Grid <-> Image Codec

This module handles:
- Rasterizing one lattice layer into a palette-colored image
- Reading model output back into cell state (red > green marks a cell RED)
- Letterbox resizing to the model's square input with strict nearest-neighbor
  interpolation, and the inverse crop back to grid resolution
- PNG read/write for dataset generation

Images are float32 arrays of shape (height, width, channels) with values in
[0, 1]. A grid image has height = size.z and width = size.x, so the pixel of
cell (x, layer, z) is image[z, x].
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple, Union
import logging
import numpy as np
from PIL import Image

from .config import FILL_COLOR, MODEL_RESOLUTION
from .errors import InvalidArgument
from .lattice import Lattice
from .states import FunctionState, palette_lut

logger = logging.getLogger(__name__)


def point_resize(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize an image using NEAREST NEIGHBOR interpolation.

    Each channel goes through Pillow as a 32-bit float image, so values are
    copied exactly and never blended.

    Args:
        image: Array of shape (H, W, C)
        width: Target width
        height: Target height

    Returns:
        float32 array of shape (height, width, C)
    """
    if image.shape[0] == height and image.shape[1] == width:
        return image.astype(np.float32, copy=True)

    channels = []
    for c in range(image.shape[2]):
        img = Image.fromarray(np.ascontiguousarray(image[:, :, c], dtype=np.float32))
        img = img.resize((width, height), Image.Resampling.NEAREST)
        channels.append(np.asarray(img, dtype=np.float32))
    return np.stack(channels, axis=-1)


def letterbox_box(width: int, height: int, target: int) -> Tuple[int, int, int, int]:
    """
    Placement of a width x height image scaled into a target square.

    The longer side fills the square and the image is centred.

    Returns:
        Tuple of (left, top, scaled_width, scaled_height)
    """
    scale = target / max(width, height)
    new_w = max(1, int(round(width * scale)))
    new_h = max(1, int(round(height * scale)))
    return (target - new_w) // 2, (target - new_h) // 2, new_w, new_h


class GridCodec:
    """
    Bidirectional mapping between lattice layers and images.

    Attributes:
        target: Square resolution produced by resize()
        fill_color: RGB letterbox fill
    """

    def __init__(
        self,
        target: int = MODEL_RESOLUTION,
        fill_color: Sequence[float] = FILL_COLOR
    ):
        self.target = target
        self.fill_color = tuple(float(c) for c in fill_color)
        self._lut = palette_lut()

    def rasterize(
        self,
        lattice: Lattice,
        layer: int = 0,
        include_alpha: bool = False
    ) -> np.ndarray:
        """
        Convert one layer of the lattice to an image.

        Args:
            lattice: Source lattice
            layer: Y layer to read
            include_alpha: If True, return RGBA with EMPTY cells transparent

        Returns:
            float32 array of shape (size.z, size.x, 4 or 3)
        """
        codes = lattice.layer_states(layer).T.astype(np.intp)
        image = self._lut[codes + 1]
        if not include_alpha:
            image = image[:, :, :3]
        return np.ascontiguousarray(image, dtype=np.float32)

    def apply_inferred(
        self,
        lattice: Lattice,
        image: np.ndarray,
        layer: int = 0
    ) -> int:
        """
        Mark cells RED where the inferred image's red exceeds its green.

        Unmarked pixels leave their cells untouched.

        Args:
            lattice: Lattice to update
            image: Array of shape (size.z, size.x, C) with C >= 3
            layer: Y layer to write

        Returns:
            Number of marked pixels
        """
        image = np.asarray(image, dtype=np.float32)
        size_x, _, size_z = lattice.size
        if image.ndim != 3 or image.shape[:2] != (size_z, size_x) or image.shape[2] < 3:
            raise InvalidArgument(
                f"Image shape {image.shape} doesn't match layer ({size_z}, {size_x}, >=3)"
            )

        marked = image[:, :, 0] > image[:, :, 1]
        count = lattice.mark_layer(layer, marked.T, FunctionState.RED)
        logger.debug("Marked %d cells RED on layer %d", count, layer)
        return count

    def resize(
        self,
        image: np.ndarray,
        target: Optional[int] = None,
        fill_color: Optional[Sequence[float]] = None
    ) -> np.ndarray:
        """
        Letterbox an image into a target x target square.

        The image is point-scaled so its longer side equals ``target``,
        centred, and the remainder is filled with ``fill_color``. The channel
        count is preserved; padding is opaque.

        Args:
            image: Array of shape (H, W, 3 or 4)
            target: Square size (default: self.target)
            fill_color: RGB fill (default: self.fill_color)

        Returns:
            float32 array of shape (target, target, C)
        """
        target = target or self.target
        fill = tuple(fill_color) if fill_color is not None else self.fill_color

        h, w, c = image.shape
        left, top, new_w, new_h = letterbox_box(w, h, target)
        scaled = point_resize(image, new_w, new_h)

        canvas = np.empty((target, target, c), dtype=np.float32)
        canvas[:, :, :3] = fill[:3]
        if c == 4:
            canvas[:, :, 3] = 1.0
        canvas[top:top + new_h, left:left + new_w] = scaled
        return canvas

    def restore(self, image: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
        """
        Undo resize(): crop the letterboxed region and scale it back.

        Args:
            image: Square array produced from an image of ``size``
            size: Original (width, height)

        Returns:
            float32 array of shape (height, width, C)
        """
        if image.shape[0] != image.shape[1]:
            raise InvalidArgument(f"Expected a square image, got {image.shape[:2]}")

        width, height = size
        left, top, new_w, new_h = letterbox_box(width, height, image.shape[0])
        content = image[top:top + new_h, left:left + new_w]
        return point_resize(content, width, height)


def save_image(image: np.ndarray, path: Union[str, Path]) -> Path:
    """
    Write an image as PNG.

    Rows are flipped so that z grows upwards in the file.

    Args:
        image: float32 array of shape (H, W, 3 or 4)
        path: Output path; ".png" is appended when it has no suffix

    Returns:
        The written path
    """
    path = Path(path)
    if not path.suffix:
        path = path.with_suffix(".png")
    path.parent.mkdir(parents=True, exist_ok=True)

    data = np.clip(np.rint(np.asarray(image) * 255.0), 0, 255).astype(np.uint8)
    Image.fromarray(np.ascontiguousarray(np.flipud(data))).save(path)
    return path


def load_image(path: Union[str, Path], include_alpha: bool = False) -> np.ndarray:
    """
    Read a PNG written by save_image().

    Args:
        path: Image path
        include_alpha: If True, return RGBA

    Returns:
        float32 array of shape (H, W, 3 or 4) in [0, 1]
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    img = Image.open(path)
    mode = "RGBA" if include_alpha else "RGB"
    if img.mode != mode:
        img = img.convert(mode)

    data = np.array(img, dtype=np.float32) / 255.0
    return np.ascontiguousarray(np.flipud(data))
