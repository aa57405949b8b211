"""
Display Subscriber - bridges EventBus results to a display surface.

Keeps the latest result as an immutable snapshot instead of a shared
mutable string: the analysis thread swaps in a new ClassificationResult,
readers always see either the old one or the new one.
"""
from typing import Optional

from core.bus import EventBus
from core.events import ClassificationReady, ClassificationResult, FrameSkipped
from core.protocols import DisplaySurface
from utils.constants import INITIAL_DISPLAY_TEXT
from utils.logger import Logger


class DisplaySubscriber:
    """
    Subscribes to ClassificationReady and FrameSkipped events.

    Results are forwarded to the display; skipped frames leave the
    displayed text untouched.
    """

    def __init__(self, bus: EventBus, display: DisplaySurface):
        """
        Args:
            bus: Shared event bus.
            display: Anything with show_text(str) (Qt window or console).
        """
        self.bus = bus
        self.display = display
        self.logger = Logger("DisplaySubscriber")
        self._latest: Optional[ClassificationResult] = None

        self.bus.subscribe(ClassificationReady, self._on_classification)
        self.bus.subscribe(FrameSkipped, self._on_frame_skipped)

    @property
    def latest(self) -> Optional[ClassificationResult]:
        return self._latest

    @property
    def current_text(self) -> str:
        latest = self._latest
        return latest.text if latest is not None else INITIAL_DISPLAY_TEXT

    def _on_classification(self, event: ClassificationReady) -> None:
        self._latest = event.result
        self.display.show_text(event.result.text)

    def _on_frame_skipped(self, event: FrameSkipped) -> None:
        self.logger.debug(f"Frame skipped ({event.kind}: {event.reason}); keeping '{self.current_text}'")
