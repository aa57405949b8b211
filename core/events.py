"""
Typed event definitions (messages) for the Catwatch Node pipeline.

Frames flow between stages through a queue; results reach the display
through the event bus. No stage holds a reference to the display.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple
import time
import numpy as np


# ─── Pipeline Messages (flow through Queue stages) ───────────────────────

@dataclass(frozen=True)
class Plane:
    """One component plane of a planar camera frame."""
    buffer: bytes
    row_stride: int
    pixel_stride: int = 1

    def __len__(self) -> int:
        return len(self.buffer)


@dataclass(frozen=True)
class RawFrame:
    """A planar YUV 4:2:0 frame exactly as the camera source delivered it."""
    y: Plane
    u: Plane
    v: Plane
    width: int
    height: int
    timestamp: float = field(default_factory=time.time)
    source: str = "unknown"  # "camera" or "video"


@dataclass(frozen=True)
class DecodedImage:
    """Interleaved RGB image, shape (height, width, 3), dtype uint8."""
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


class Verdict(Enum):
    TARGET = "target"
    NOT_TARGET = "not_target"
    UNCERTAIN = "uncertain"


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of the decision policy for one frame."""
    verdict: Verdict
    probabilities: Tuple[float, ...]
    text: str

    @property
    def confidence(self) -> float:
        """Probability backing the verdict (the larger one when uncertain)."""
        if self.verdict is Verdict.TARGET:
            return self.probabilities[0]
        if self.verdict is Verdict.NOT_TARGET:
            return self.probabilities[1]
        return max(self.probabilities)


# ─── Event Bus Events (control plane) ────────────────────────────────────

@dataclass
class ClassificationReady:
    """Published by the analysis stage after every successfully classified frame."""
    result: ClassificationResult
    frame_timestamp: float = 0.0
    timestamp: float = field(default_factory=time.time)


@dataclass
class FrameSkipped:
    """Published when a frame was dropped because decoding or inference failed."""
    kind: str = ""          # "DecodeFailure" or "InferenceFailure"
    reason: str = ""
    timestamp: float = field(default_factory=time.time)
