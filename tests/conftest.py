import cv2
import numpy as np
import pytest

from core.decoder import raw_frame_from_i420
from utils.failures import InferenceFailure


def make_raw_frame(rgb: np.ndarray, source: str = "test"):
    """Planar I420 RawFrame for an even-sized RGB image."""
    height, width = rgb.shape[:2]
    i420 = cv2.cvtColor(rgb, cv2.COLOR_RGB2YUV_I420)
    return raw_frame_from_i420(i420, width, height, source=source)


def make_uniform_frame(width: int, height: int, y: int = 128, u: int = 128, v: int = 128):
    """Planar RawFrame of any size with constant Y, U and V samples."""
    chroma = ((height + 1) // 2) * ((width + 1) // 2)
    buffer = np.concatenate([
        np.full(width * height, y, dtype=np.uint8),
        np.full(chroma, u, dtype=np.uint8),
        np.full(chroma, v, dtype=np.uint8),
    ])
    return raw_frame_from_i420(buffer, width, height)


class FakeEngine:
    """InferenceEngine double returning fixed scores."""

    def __init__(self, scores=(10.0, 0.0), fail_load=False, fail_run=False):
        self.scores = np.asarray(scores, dtype=np.float32)
        self.fail_load = fail_load
        self.fail_run = fail_run
        self.loaded = False
        self.load_calls = 0
        self.close_calls = 0
        self.inputs = []

    @property
    def is_loaded(self):
        return self.loaded

    def load(self):
        self.load_calls += 1
        if self.fail_load:
            raise InferenceFailure("model missing")
        self.loaded = True

    def run(self, tensor):
        if self.fail_run:
            raise InferenceFailure("shape mismatch")
        self.inputs.append(tensor)
        return self.scores

    def close(self):
        self.close_calls += 1
        self.loaded = False


class ListSource:
    """FrameSource double that yields a fixed list of frames, then None."""

    def __init__(self, frames, start_ok=True):
        self.frames = list(frames)
        self.start_ok = start_ok
        self.started = 0
        self.stopped = 0

    def start(self):
        self.started += 1
        return self.start_ok

    def read_frame(self):
        return self.frames.pop(0) if self.frames else None

    def stop(self):
        self.stopped += 1


class RecordingDisplay:
    def __init__(self):
        self.texts = []

    def show_text(self, text):
        self.texts.append(text)


@pytest.fixture
def gray_frame():
    return make_uniform_frame(64, 48)


@pytest.fixture
def fake_engine():
    return FakeEngine()
