"""
Analysis Stage - the single background worker that classifies frames.

For every frame: decode → build tensor → run the engine → map the scores
to a result → publish ClassificationReady. A frame that fails to decode or
classify is skipped; the display keeps showing the previous result.
"""
from queue import Queue, Empty
from threading import Thread, Event
from typing import Optional

from core.bus import EventBus
from core.decision import DecisionMapper
from core.decoder import FrameDecoder
from core.events import RawFrame, ClassificationReady, ClassificationResult, FrameSkipped
from core.protocols import InferenceEngine
from core.stages.capture import offer_latest
from core.tensor import TensorBuilder
from utils.failures import CatwatchError, DecodeFailure, FailureManager, InferenceFailure
from utils.logger import Logger


class AnalysisStage(Thread):
    """
    Pipeline Stage 1: decode, infer and decide.

    Owns the inference engine: it is loaded on the first frame (and retried
    on later frames if loading failed) and released when the stage stops.
    """

    def __init__(
        self,
        in_queue: Queue,
        bus: EventBus,
        stop_event: Event,
        engine: InferenceEngine,
        decoder: Optional[FrameDecoder] = None,
        tensor_builder: Optional[TensorBuilder] = None,
        mapper: Optional[DecisionMapper] = None,
        failures: Optional[FailureManager] = None,
        viewer_queue: Optional[Queue] = None,
    ):
        """
        Args:
            in_queue: Queue of RawFrames from the CaptureStage.
            bus: EventBus receiving ClassificationReady / FrameSkipped events.
            stop_event: Shared threading.Event for shutdown.
            engine: Any object implementing the InferenceEngine protocol.
            decoder: Frame decoder (defaults to FrameDecoder()).
            tensor_builder: Tensor builder (defaults to 224x224 input).
            mapper: Decision mapper (defaults to threshold 0.9, two classes).
            failures: FailureManager used to track skipped frames.
            viewer_queue: Optional bounded queue receiving decoded RGB frames
                          for the preview window.
        """
        super().__init__(name="AnalysisStage", daemon=True)
        self.in_queue = in_queue
        self.bus = bus
        self.stop_event = stop_event
        self.engine = engine
        self.decoder = decoder or FrameDecoder()
        self.tensor_builder = tensor_builder or TensorBuilder()
        self.mapper = mapper or DecisionMapper()
        self.failures = failures or FailureManager()
        self.viewer_queue = viewer_queue
        self.frames_classified = 0
        self.frames_skipped = 0
        self.logger = Logger("AnalysisStage")

    def run(self) -> None:
        """Main analysis loop - one frame at a time until stop_event is set."""
        self.logger.info("Analysis stage running")

        try:
            while not self.stop_event.is_set():
                try:
                    frame: RawFrame = self.in_queue.get(timeout=0.5)
                except Empty:
                    continue

                self.process(frame)
        finally:
            self.engine.close()
            self.logger.info(
                f"Analysis stage stopped ({self.frames_classified} classified, "
                f"{self.frames_skipped} skipped; in the last {self.failures.window_seconds}s: "
                f"{self.failures.count('DecodeFailure')} decode, "
                f"{self.failures.count('InferenceFailure')} inference failures)"
            )

    def process(self, frame: RawFrame) -> Optional[ClassificationResult]:
        """Classify one frame and publish the result. Returns None if the frame was skipped."""
        self.logger.debug(f"Processing {frame.width}x{frame.height} frame from {frame.source}")

        try:
            result = self._classify(frame)
        except (DecodeFailure, InferenceFailure) as e:
            self._skip(e)
            return None

        self.frames_classified += 1
        self.bus.publish(ClassificationReady(result=result, frame_timestamp=frame.timestamp))
        return result

    def _classify(self, frame: RawFrame) -> ClassificationResult:
        image = self.decoder.decode(frame)

        if self.viewer_queue is not None:
            offer_latest(self.viewer_queue, image.pixels)

        flat = self.tensor_builder.build(image)

        if not self.engine.is_loaded:
            self.engine.load()
        scores = self.engine.run(self.tensor_builder.batch(flat))

        return self.mapper.map(scores)

    def _skip(self, error: CatwatchError) -> None:
        self.frames_skipped += 1
        self.failures.record_failure(error)
        self.bus.publish(FrameSkipped(kind=type(error).__name__, reason=error.message))
