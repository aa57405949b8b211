"""Inference Engine Handler - Loads the bundled TorchScript classifier and runs it.

Implements the InferenceEngine protocol. The model is acquired once and
reused for every frame; close() releases it when the stream stops.
"""
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import torch

from utils.constants import DEFAULT_CLASS_COUNT, DEFAULT_INPUT_SIZE, INPUT_CHANNELS
from utils.failures import InferenceFailure
from utils.logger import Logger


def resolve_device(name: str = "auto") -> torch.device:
    """Map a config device name to a torch.device ("auto" prefers CUDA)."""
    if name == "auto":
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")
    return torch.device(name)


class TorchInferenceEngine:
    """TorchScript classifier with fixed input shape (1, 3, S, S) and output shape (1, C)."""

    def __init__(
        self,
        model_path: str,
        device: str = "auto",
        input_size: int = DEFAULT_INPUT_SIZE,
        class_count: int = DEFAULT_CLASS_COUNT,
    ):
        """
        Args:
            model_path: Path to the TorchScript (.pt) model artifact.
            device: "auto", "cpu", "cuda" or any torch device string.
            input_size: Side length of the square model input.
            class_count: Number of scores the model returns per image.
        """
        self.model_path = str(model_path)
        self.device_name = device
        self.input_shape: Tuple[int, ...] = (1, INPUT_CHANNELS, input_size, input_size)
        self.output_shape: Tuple[int, ...] = (1, class_count)
        self.logger = Logger("InferenceEngine")
        self.device: Optional[torch.device] = None
        self.model = None

    @property
    def is_loaded(self) -> bool:
        return self.model is not None

    def load(self) -> None:
        """Load the model once. Raises InferenceFailure if it cannot be loaded."""
        if self.model is not None:
            return

        if not Path(self.model_path).exists():
            raise InferenceFailure(f"Model file not found: {self.model_path}")

        try:
            self.device = resolve_device(self.device_name)
            model = torch.jit.load(self.model_path, map_location=self.device)
            model.eval()
        except (RuntimeError, ValueError, OSError) as e:
            raise InferenceFailure(f"Error loading model {self.model_path}: {e}", critical=True) from e

        self.model = model
        self.logger.info(f"Model loaded on {self.device}: {self.model_path}")

    def run(self, tensor: np.ndarray) -> np.ndarray:
        """
        Classify one batch.

        Args:
            tensor: float32 array of shape (1, 3, S, S).

        Returns:
            Raw scores, a float32 array of length class_count.
        """
        if self.model is None:
            raise InferenceFailure("Inference engine is not loaded")

        if tensor.dtype != np.float32:
            raise InferenceFailure(f"Input tensor must be float32, got {tensor.dtype}")
        if tuple(tensor.shape) != self.input_shape:
            raise InferenceFailure(
                f"Input shape mismatch: expected {self.input_shape}, got {tuple(tensor.shape)}"
            )

        try:
            with torch.inference_mode():
                inputs = torch.from_numpy(tensor).to(self.device)
                output = self.model(inputs)
        except RuntimeError as e:
            raise InferenceFailure(f"Inference error: {e}") from e

        if not isinstance(output, torch.Tensor):
            raise InferenceFailure(f"Model returned {type(output).__name__}, expected a tensor")
        if tuple(output.shape) != self.output_shape:
            raise InferenceFailure(
                f"Output shape mismatch: expected {self.output_shape}, got {tuple(output.shape)}"
            )

        return output.detach().float().cpu().numpy().reshape(-1)

    def close(self) -> None:
        """Release the model (and cached CUDA memory)."""
        if self.model is None:
            return
        self.model = None
        if self.device is not None and self.device.type == "cuda":
            torch.cuda.empty_cache()
        self.logger.info(f"Model released: {self.model_path}")
