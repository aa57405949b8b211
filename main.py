"""
Catwatch Node - Entry Point

    CaptureStage → [frame_queue, keep-only-latest] → AnalysisStage
                                                         ↓ EventBus
                                   DisplaySubscriber ← ClassificationReady
"""
import signal
import argparse
from pathlib import Path
from queue import Queue
from threading import Event, current_thread

from utils.config import Config
from utils.constants import BASE_DIR
from utils.failures import FailureManager
from utils.logger import Logger

from core.bus import EventBus
from core.decision import DecisionMapper, DecisionPolicy
from core.decoder import FrameDecoder
from core.display_subscriber import DisplaySubscriber
from core.stages import AnalysisStage, CaptureStage
from core.tensor import TensorBuilder


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Catwatch Node - is this Lizzy the cat?")
    parser.add_argument(
        '--video', '-v',
        type=str,
        default=None,
        help='Path to video file for testing (bypasses camera)'
    )
    parser.add_argument(
        '--model', '-m',
        type=str,
        default=None,
        help='Path to the TorchScript model (overrides model.path)'
    )
    parser.add_argument(
        '--headless',
        action='store_true',
        help='Log results to the console instead of opening a window'
    )
    parser.add_argument(
        '--config-dir',
        type=str,
        default=None,
        help='Directory of JSON config files (defaults to ./configs)'
    )
    return parser.parse_args(argv)


def resolve_model_path(path: str) -> Path:
    """Relative model paths are taken from the project root."""
    model_path = Path(path).expanduser()
    return model_path if model_path.is_absolute() else BASE_DIR / model_path


class CatwatchNode:
    """
    Orchestrator: wires config, logging, the frame source, both pipeline
    stages and the display. Stages talk through a queue and the event bus only.
    """

    join_timeout = 2.0

    def __init__(self, video_path: str = None, model_path: str = None,
                 headless: bool = False, config_dir: str = None):
        # ── 1. Foundation ────────────────────────────────────────────
        self.config = Config(config_dir)
        if model_path:
            self.config.set('model.path', model_path)
        Logger.setup(self.config.get('logging', {}))
        self.logger = Logger("CatwatchNode")
        self.logger.info("Initializing Catwatch Node...")

        self.stop_event = Event()
        self.bus = EventBus()
        self.failures = FailureManager(self.config.get('failures', {}))

        # ── 2. Queues ────────────────────────────────────────────────
        self.frame_queue = Queue(maxsize=1)       # keep-only-latest
        self.viewer_queue = None if headless else Queue(maxsize=2)

        # ── 3. Frame Source (Camera or Video) ────────────────────────
        if video_path:
            from Handlers.Video_Input_Handler import VideoInputHandler
            self.frame_source = VideoInputHandler(video_path)
            self.source_type = "video"
            self.logger.info(f"Video test mode: {video_path}")
        else:
            from Handlers.Camera_Handler import CameraHandler
            self.frame_source = CameraHandler(self.config.get('camera', {}))
            self.source_type = "camera"

        # ── 4. Inference Engine (loaded lazily by the AnalysisStage) ─
        from Handlers.Inference_Engine_Handler import TorchInferenceEngine
        input_size = self.config.get_int('model.input_size', 224)
        policy = DecisionPolicy.from_config(self.config)
        self.engine = TorchInferenceEngine(
            model_path=str(resolve_model_path(self.config.get('model.path'))),
            device=self.config.get('model.device', 'auto'),
            input_size=input_size,
            class_count=policy.class_count,
        )

        # ── 5. Pipeline Stages ───────────────────────────────────────
        self.capture_stage = CaptureStage(
            source=self.frame_source,
            out_queue=self.frame_queue,
            stop_event=self.stop_event,
            fps=self.config.get_int('camera.fps', 30),
            loop_video=self.config.get_bool('camera.loop_video', True),
            source_type=self.source_type,
        )
        self.analysis_stage = AnalysisStage(
            in_queue=self.frame_queue,
            bus=self.bus,
            stop_event=self.stop_event,
            engine=self.engine,
            decoder=FrameDecoder(swap_chroma=self.config.get_bool('decoder.swap_chroma', False)),
            tensor_builder=TensorBuilder(input_size),
            mapper=DecisionMapper(policy),
            failures=self.failures,
            viewer_queue=self.viewer_queue,
        )

        # ── 6. Display + Display Subscriber ──────────────────────────
        if headless:
            from Handlers.Console_Display_Handler import ConsoleDisplay
            self.display = ConsoleDisplay()
        else:
            from Handlers.Display_Handler import DisplayHandler
            self.display = DisplayHandler(
                config=self.config,
                viewer_queue=self.viewer_queue,
                stop_event=self.stop_event,
            )
        self.headless = headless
        self.display_subscriber = DisplaySubscriber(bus=self.bus, display=self.display)

        # ── 7. OS Signals ────────────────────────────────────────────
        self._setup_signals()
        self.logger.info("Catwatch Node initialized successfully")

    def _setup_signals(self):
        """Handle OS signals for graceful shutdown."""
        def handler(sig, frame):
            self.logger.info("Shutdown signal received")
            self.stop_event.set()
        signal.signal(signal.SIGINT, handler)
        signal.signal(signal.SIGTERM, handler)

    def start(self):
        """Start the pipeline and block until the window closes or shutdown is requested."""
        self.logger.info("Starting Catwatch Node...")
        self.capture_stage.start()
        self.analysis_stage.start()

        try:
            if self.headless:
                # A finished (non-looping) video ends the run
                while not self.stop_event.wait(0.5):
                    if not self.capture_stage.is_alive():
                        self.logger.info("Frame source finished")
                        break
            else:
                self.display.start()
        finally:
            self.stop()

    def stop(self):
        """Gracefully shutdown all components."""
        if self.stop_event.is_set() and not (self.capture_stage.is_alive() or self.analysis_stage.is_alive()):
            return

        self.stop_event.set()
        self.logger.info("Stopping Catwatch Node...")

        if not self.headless:
            self.display.stop()

        for stage in (self.capture_stage, self.analysis_stage):
            if stage.is_alive() and stage is not current_thread():
                stage.join(timeout=self.join_timeout)

        # The analysis stage releases the engine on exit; cover the case where it never ran.
        # A worker still inside engine.run keeps the model until it exits.
        if not self.analysis_stage.is_alive():
            self.engine.close()
        else:
            self.logger.warning("Analysis stage still busy; it will release the engine when it exits")
        self.bus.clear()
        self.logger.info(f"Catwatch Node stopped. Last result: {self.display_subscriber.current_text}")


def main(argv=None):
    args = parse_args(argv)

    node = CatwatchNode(
        video_path=args.video,
        model_path=args.model,
        headless=args.headless,
        config_dir=args.config_dir,
    )
    node.start()


if __name__ == "__main__":
    main()
