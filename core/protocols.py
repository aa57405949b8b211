"""
Protocol definitions (interfaces) for the Catwatch Node.

These define the contracts that adapters must implement,
enabling dependency injection and easy testing/swapping.
"""
from typing import Protocol, Optional, runtime_checkable
import numpy as np

from core.events import RawFrame


@runtime_checkable
class FrameSource(Protocol):
    """Interface for any frame-producing component (camera, video file, etc.)."""

    def start(self) -> bool:
        """Initialize and begin frame acquisition. Returns True on success."""
        ...

    def read_frame(self) -> Optional[RawFrame]:
        """
        Read the next available frame.

        Returns:
            A planar YUV 4:2:0 RawFrame, or None if no frame is available.
        """
        ...

    def stop(self) -> None:
        """Release resources and stop frame acquisition."""
        ...


@runtime_checkable
class InferenceEngine(Protocol):
    """Interface for the classifier backend."""

    @property
    def is_loaded(self) -> bool:
        ...

    def load(self) -> None:
        """Acquire the model. Raises InferenceFailure if it cannot be loaded."""
        ...

    def run(self, tensor: np.ndarray) -> np.ndarray:
        """
        Run inference on one input batch.

        Args:
            tensor: float32 array with the engine's declared input shape.

        Returns:
            Raw (unnormalized) scores, one per class.
        """
        ...

    def close(self) -> None:
        """Release the model."""
        ...


@runtime_checkable
class DisplaySurface(Protocol):
    """Anything that can show the current result string."""

    def show_text(self, text: str) -> None:
        ...
