"""Video Input Handler - Reads frames from a video file for testing.

Implements the FrameSource protocol, same interface as CameraHandler.
Each decoded BGR frame is converted to planar I420 so the rest of the
pipeline sees exactly what a YUV camera would deliver.
"""
import cv2
from typing import Optional
from pathlib import Path

from core.decoder import raw_frame_from_i420
from core.events import RawFrame
from utils.logger import Logger


class VideoInputHandler:
    """Handles video file input for testing purposes.

    Implements the FrameSource protocol:
        start() -> bool
        read_frame() -> Optional[RawFrame]
        stop() -> None
    """

    def __init__(self, video_path: str):
        """
        Args:
            video_path: Path to the video file.
        """
        self.video_path = video_path
        self.logger = Logger("VideoInputHandler")
        self.cap: Optional[cv2.VideoCapture] = None

    # ── FrameSource protocol ──────────────────────────────────────────

    def start(self) -> bool:
        """Open the video file for reading."""
        if not Path(self.video_path).exists():
            self.logger.error(f"Video file not found: {self.video_path}")
            return False

        self.cap = cv2.VideoCapture(self.video_path)
        if not self.cap.isOpened():
            self.logger.error(f"Failed to open video file: {self.video_path}")
            self.cap = None
            return False

        self.logger.info(f"Video file opened: {self.video_path}")
        return True

    def read_frame(self) -> Optional[RawFrame]:
        """Read the next frame and return it as planar YUV 4:2:0."""
        if self.cap is None:
            return None

        ret, frame = self.cap.read()
        if not ret:
            return None

        # I420 conversion needs even dimensions
        height, width = frame.shape[:2]
        frame = frame[:height - height % 2, :width - width % 2]
        height, width = frame.shape[:2]

        i420 = cv2.cvtColor(frame, cv2.COLOR_BGR2YUV_I420)
        return raw_frame_from_i420(i420, width, height, source="video")

    def stop(self) -> None:
        """Release the video capture resources."""
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            self.logger.info("Video capture released")
