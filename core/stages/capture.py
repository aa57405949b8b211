"""
Capture Stage - reads frames from a FrameSource and offers them to the
analysis stage with keep-only-latest backpressure.
"""
import time
from queue import Queue, Empty, Full
from threading import Thread, Event
from typing import Any

from core.protocols import FrameSource
from utils.logger import Logger


def offer_latest(queue: Queue, item: Any) -> bool:
    """
    Put `item` into a bounded queue, discarding stale items to make room.

    Returns True if an older item was dropped.
    """
    dropped = False
    while True:
        try:
            queue.put_nowait(item)
            return dropped
        except Full:
            try:
                queue.get_nowait()
                dropped = True
            except Empty:
                pass


class CaptureStage(Thread):
    """
    Pipeline Stage 0: Frame acquisition.

    Pulls RawFrames from any FrameSource (camera, video file, etc.) and
    hands them to the analysis stage, one at a time.
    """

    def __init__(
        self,
        source: FrameSource,
        out_queue: Queue,
        stop_event: Event,
        fps: int = 30,
        loop_video: bool = True,
        source_type: str = "unknown",
    ):
        """
        Args:
            source: Any object implementing the FrameSource protocol.
            out_queue: Bounded queue (maxsize=1) shared with the AnalysisStage.
            stop_event: Shared threading.Event - set to signal shutdown.
            fps: Target frame rate for capture loop timing.
            loop_video: If True and source is a video file, restart on EOF.
            source_type: "camera" or "video".
        """
        super().__init__(name="CaptureStage", daemon=True)
        self.source = source
        self.out_queue = out_queue
        self.stop_event = stop_event
        self.fps = fps
        self.loop_video = loop_video
        self.source_type = source_type
        self.frames_captured = 0
        self.frames_dropped = 0
        self.logger = Logger("CaptureStage")

    def run(self) -> None:
        """Main capture loop - runs until stop_event is set or a video ends."""
        if not self.source.start():
            self.logger.error("Frame source failed to start")
            return

        self.logger.info(f"Capture stage running ({self.source_type}, {self.fps} FPS target)")
        frame_interval = 1.0 / max(self.fps, 1)

        try:
            while not self.stop_event.is_set():
                loop_start = time.monotonic()

                frame = self.source.read_frame()

                if frame is None:
                    if self.source_type == "video" and self.loop_video:
                        self.logger.info("Video ended - looping back to start")
                        self.source.stop()
                        if not self.source.start():
                            self.logger.error("Failed to restart video source")
                            break
                        continue
                    elif self.source_type == "video":
                        self.logger.info("Video playback finished")
                        break
                    else:
                        # Camera glitch - brief retry
                        time.sleep(0.1)
                        continue

                self.frames_captured += 1
                if offer_latest(self.out_queue, frame):
                    self.frames_dropped += 1

                elapsed = time.monotonic() - loop_start
                sleep_time = frame_interval - elapsed
                if sleep_time > 0:
                    time.sleep(sleep_time)
        finally:
            self.source.stop()
            self.logger.info(
                f"Capture stage stopped ({self.frames_captured} captured, "
                f"{self.frames_dropped} dropped as stale)"
            )
