"""
Camera Handler - Captures planar YUV 4:2:0 frames with Picamera2.

Implements the FrameSource protocol; the CaptureStage thread pulls frames
through read_frame(), so this class runs no thread of its own.
"""
import time
import numpy as np
from typing import Optional

from core.events import Plane, RawFrame
from utils.logger import Logger

try:
    from picamera2 import Picamera2
    PICAMERA_AVAILABLE = True
except ImportError:
    PICAMERA_AVAILABLE = False

# Sensor warm-up in seconds before the first frame is trusted
WARMUP_SECONDS = 2.0
# Max consecutive empty frames before attempting a camera restart
MAX_EMPTY_FRAMES = 50


def raw_frame_from_picamera(array: np.ndarray, width: int, height: int) -> RawFrame:
    """
    Split a Picamera2 "YUV420" capture into planes.

    The array is (height * 3 / 2, stride): `height` rows of Y, then the U and
    V planes, each packed two half-width rows per array row.
    """
    stride = array.shape[1]
    data = np.ascontiguousarray(array).reshape(-1)
    y_size = stride * height
    c_size = (stride // 2) * ((height + 1) // 2)

    return RawFrame(
        y=Plane(data[:y_size].tobytes(), row_stride=stride),
        u=Plane(data[y_size:y_size + c_size].tobytes(), row_stride=stride // 2),
        v=Plane(data[y_size + c_size:y_size + 2 * c_size].tobytes(), row_stride=stride // 2),
        width=width,
        height=height,
        source="camera",
    )


class CameraHandler:
    """Handles interaction with the camera hardware via Picamera2."""

    def __init__(self, config: dict):
        """
        Args:
            config: Camera-specific configuration subset
        """
        self.config = config
        self.logger = Logger("CameraHandler")
        self.picam2 = None
        self.width = int(config.get('width', 640))
        self.height = int(config.get('height', 480))
        self.empty_frame_count = 0

        if not PICAMERA_AVAILABLE:
            self.logger.error("Picamera2 not available. Install with: sudo apt install python3-picamera2")

    # ── FrameSource protocol ──────────────────────────────────────────

    def start(self) -> bool:
        """Initialize the camera hardware. Returns False if it is unavailable."""
        if not PICAMERA_AVAILABLE:
            self.logger.error("Cannot start: Picamera2 not installed")
            return False
        if self.picam2 is not None:
            return True
        return self._init_camera()

    def read_frame(self) -> Optional[RawFrame]:
        """Capture one frame; None while the stream is empty or restarting."""
        if self.picam2 is None:
            return None

        try:
            array = self.picam2.capture_array("main")
        except RuntimeError as e:
            self.logger.warning(f"Frame capture error: {e}")
            return None

        if array is None or array.size == 0 or array.max() == 0:
            self.empty_frame_count += 1
            if self.empty_frame_count == 1:
                self.logger.warning("Captured empty frame, waiting for camera stream...")
            if self.empty_frame_count >= MAX_EMPTY_FRAMES:
                self.logger.warning(f"{MAX_EMPTY_FRAMES} consecutive empty frames. Restarting camera...")
                self.stop()
                self._init_camera()
            return None

        if self.empty_frame_count > 0:
            self.logger.info(f"Camera stream recovered after {self.empty_frame_count} empty frame(s)")
            self.empty_frame_count = 0

        return raw_frame_from_picamera(array, self.width, self.height)

    def stop(self) -> None:
        """Stop and close the camera."""
        if self.picam2 is None:
            return
        try:
            self.picam2.stop()
            self.picam2.close()
        except RuntimeError as e:
            self.logger.warning(f"Error during camera cleanup: {e}")
        self.picam2 = None
        self.logger.info("Camera stopped")

    # ── Internal ──────────────────────────────────────────────────────

    def _init_camera(self) -> bool:
        """Configure the sensor for planar YUV420 capture."""
        try:
            self.picam2 = Picamera2()
            config = self.picam2.create_preview_configuration(
                main={"size": (self.width, self.height), "format": "YUV420"}
            )
            self.picam2.configure(config)
            self.picam2.start()
        except RuntimeError as e:
            self.logger.error(f"Failed to initialize camera: {e}")
            self.picam2 = None
            return False

        self.logger.info(f"Waiting {WARMUP_SECONDS}s for camera warm-up...")
        time.sleep(WARMUP_SECONDS)
        self.empty_frame_count = 0
        self.logger.info(f"Camera ready at {self.width}x{self.height} (YUV420)")
        return True
