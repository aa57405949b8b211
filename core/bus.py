"""
In-process Event Bus for the Catwatch Node.

Carries results from the analysis worker to whoever displays them
(ClassificationReady, FrameSkipped). Handlers run on the
publisher's thread, so display handlers must hand work to their own UI
thread themselves.
"""
import threading
from collections import defaultdict
from typing import Callable, Any, Dict, List, Type
from utils.logger import Logger


class EventBus:
    """
    Thread-safe publish/subscribe bus keyed by event class.

    Usage:
        bus = EventBus()
        bus.subscribe(ClassificationReady, on_result)
        bus.publish(ClassificationReady(result=...))
    """

    def __init__(self):
        self._subscribers: Dict[Type, List[Callable]] = defaultdict(list)
        self._lock = threading.Lock()
        self.logger = Logger("EventBus")

    def subscribe(self, event_type: Type, handler: Callable[[Any], None]) -> None:
        """Register `handler` for every published instance of `event_type`."""
        with self._lock:
            self._subscribers[event_type].append(handler)
        self.logger.debug(f"Subscribed {handler.__qualname__} to {event_type.__name__}")

    def publish(self, event: Any) -> None:
        """
        Deliver `event` to its subscribers on the caller's thread.

        A failing handler is logged and does not stop the others, nor the
        publishing stage.
        """
        event_type = type(event)
        with self._lock:
            handlers = list(self._subscribers.get(event_type, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(
                    f"Error in handler {handler.__qualname__} for "
                    f"{event_type.__name__}: {e}"
                )

    def clear(self) -> None:
        """Remove all subscriptions."""
        with self._lock:
            self._subscribers.clear()
