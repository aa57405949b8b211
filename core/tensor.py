"""
Tensor Builder - resizes a DecodedImage to the model input size and
flattens it channel-major (all R, then all G, then all B), scaled to [0, 1].

The channel order must match what the model was exported with; a mismatch
produces wrong answers, not errors.
"""
import cv2
import numpy as np

from core.events import DecodedImage
from utils.constants import DEFAULT_INPUT_SIZE, INPUT_CHANNELS


class TensorBuilder:
    """Builds the flat float32 input buffer for the classifier."""

    def __init__(self, input_size: int = DEFAULT_INPUT_SIZE):
        self.input_size = input_size

    @property
    def length(self) -> int:
        return INPUT_CHANNELS * self.input_size * self.input_size

    @property
    def input_shape(self) -> tuple:
        return (1, INPUT_CHANNELS, self.input_size, self.input_size)

    def build(self, image: DecodedImage) -> np.ndarray:
        """Return a flat float32 array of length 3 * size * size."""
        size = self.input_size
        pixels = image.pixels
        if pixels.shape[:2] != (size, size):
            pixels = cv2.resize(pixels, (size, size), interpolation=cv2.INTER_LINEAR)

        scaled = pixels.astype(np.float32) / np.float32(255.0)
        # HWC -> CHW, then flatten row-major within each channel
        return np.ascontiguousarray(scaled.transpose(2, 0, 1)).reshape(-1)

    def batch(self, flat: np.ndarray) -> np.ndarray:
        """Reshape a flat tensor to the engine's (1, 3, size, size) input shape."""
        return flat.reshape(self.input_shape)
