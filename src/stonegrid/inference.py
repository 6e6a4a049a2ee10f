"""
Image-to-Image Inference Adapter

Wraps an opaque image translation model (pix2pix style) behind a single
predict() call. The model is any callable taking and returning a float32
tensor of shape (256, 256, 3) with values in [-1, 1].

Range Background:
- Images are stored in [0, 1]
- The generator was trained on tanh-scaled data in [-1, 1]
- Both directions use the same affine map with swapped ranges:
  out = b1 + (in - a1) * (b2 - b1) / (a2 - a1)
"""

from typing import Callable, Optional
import logging
import numpy as np
from numba import njit, prange

from .codec import point_resize
from .config import MODEL_CHANNELS, MODEL_RESOLUTION
from .errors import InvalidArgument, ModelUnavailable

logger = logging.getLogger(__name__)

Model = Callable[[np.ndarray], np.ndarray]


@njit(cache=True, parallel=True)
def _normalise_flat(values: np.ndarray, a1: float, a2: float, b1: float, b2: float) -> np.ndarray:
    """
    Map a flat float32 buffer from [a1, a2] to [b1, b2].

    Args:
        values: 1D array
        a1, a2: Source range
        b1, b2: Target range

    Returns:
        New float32 array of the same length
    """
    n = values.shape[0]
    result = np.empty(n, dtype=np.float32)
    factor = (b2 - b1) / (a2 - a1)

    for i in prange(n):
        result[i] = b1 + (values[i] - a1) * factor

    return result


def normalise(
    tensor: np.ndarray,
    a1: float,
    a2: float,
    b1: float,
    b2: float
) -> np.ndarray:
    """
    Map every value of a tensor from range [a1, a2] to [b1, b2].

    Args:
        tensor: Array of any shape
        a1: Source range minimum
        a2: Source range maximum
        b1: Target range minimum
        b2: Target range maximum

    Returns:
        float32 array of the same shape
    """
    if a1 == a2:
        raise InvalidArgument("Source range must not be empty")
    flat = np.ascontiguousarray(tensor, dtype=np.float32).reshape(-1)
    return _normalise_flat(flat, a1, a2, b1, b2).reshape(np.shape(tensor))


class IdentityModel:
    """Model stand-in that returns its input unchanged."""

    def __call__(self, tensor: np.ndarray) -> np.ndarray:
        return tensor.copy()


class InferenceAdapter:
    """
    Normalizes images into and out of an image translation model.

    Attributes:
        model: Callable mapping a (resolution, resolution, 3) tensor in
            [-1, 1] to a tensor of the same shape
        resolution: Native square resolution of the model
    """

    def __init__(
        self,
        model: Optional[Model] = None,
        resolution: int = MODEL_RESOLUTION
    ):
        """
        Initialize the adapter.

        Args:
            model: Inference callable; predict() fails while it is None
            resolution: Model input/output size in pixels
        """
        self.model = model
        self.resolution = resolution

    @property
    def available(self) -> bool:
        """Check if a usable model is attached."""
        return self.model is not None and callable(self.model)

    def predict(self, image: np.ndarray) -> np.ndarray:
        """
        Run the model on an image.

        The image's RGB channels are point-scaled to the model resolution,
        mapped to [-1, 1], passed through the model, mapped back to [0, 1]
        and scaled back to the input's pixel dimensions.

        Args:
            image: Array of shape (H, W, 3 or 4) in [0, 1]

        Returns:
            float32 RGB array of shape (H, W, 3) in [0, 1]

        Raises:
            ModelUnavailable: If no model is attached, the model raises, or
                its output is malformed
        """
        if not self.available:
            raise ModelUnavailable("No inference model attached")

        image = np.asarray(image, dtype=np.float32)
        if image.ndim != 3 or image.shape[2] < MODEL_CHANNELS:
            raise InvalidArgument(f"Expected an (H, W, 3|4) image, got {image.shape}")

        h, w = image.shape[:2]
        res = self.resolution

        tensor = point_resize(image[:, :, :MODEL_CHANNELS], res, res)
        model_input = normalise(tensor, 0.0, 1.0, -1.0, 1.0)

        try:
            output = self.model(model_input)
        except Exception as e:
            raise ModelUnavailable(f"Model inference failed: {e}") from e

        output = np.asarray(output, dtype=np.float32)
        expected = (res, res, MODEL_CHANNELS)
        if output.shape != expected:
            raise ModelUnavailable(f"Model returned shape {output.shape}, expected {expected}")
        if not np.all(np.isfinite(output)):
            raise ModelUnavailable("Model returned non-finite values")

        prediction = np.clip(normalise(output, -1.0, 1.0, 0.0, 1.0), 0.0, 1.0)
        logger.debug("Predicted %dx%d image at %dx%d model resolution", w, h, res, res)

        return point_resize(prediction, w, h)
