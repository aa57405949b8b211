"""
Structured error handling and failure tracking for Catwatch Node.
"""
import threading
import time
from typing import Dict, List, Optional
from utils.logger import Logger


class CatwatchError(Exception):
    """Base class for all Catwatch exceptions."""
    def __init__(self, message: str, critical: bool = False):
        super().__init__(message)
        self.message = message
        self.critical = critical
        self.timestamp = time.time()


class DecodeFailure(CatwatchError):
    """Raised when a camera frame cannot be turned into an RGB image."""
    pass


class InferenceFailure(CatwatchError):
    """Raised when the inference engine is unavailable or shapes do not match."""
    pass


class ConfigError(CatwatchError):
    """Exception raised for configuration-related failures."""
    pass


class FailureManager:
    """Tracks recurring per-frame failures so a broken camera or model shows up in the logs."""

    def __init__(self, settings: Optional[dict] = None):
        """
        Args:
            settings: Dictionary containing failure thresholds (the `failures` config section)
        """
        self.logger = Logger("FailureManager")

        self.settings = settings or {}
        self.threshold = self.settings.get('threshold', 5)
        self.window_seconds = self.settings.get('window_seconds', 300)

        self.failures: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def record_failure(self, error: Exception):
        """
        Record a failure incident (thread-safe).

        Args:
            error: The exception that occurred.
        """
        with self._lock:
            error_type = type(error).__name__
            now = time.time()

            timestamps = self.failures.setdefault(error_type, [])
            timestamps.append(now)

            # Prune old entries beyond the time window
            cutoff = now - self.window_seconds
            self.failures[error_type] = [t for t in timestamps if t > cutoff]

            if isinstance(error, CatwatchError):
                msg = f"Failure detected: {error_type} - {error.message}"
                if error.critical:
                    self.logger.error(f"CRITICAL: {msg}")
                else:
                    self.logger.warning(msg)
            else:
                self.logger.error(f"Unexpected failure: {error_type} - {str(error)}")

            # Warn once per crossing, not on every frame after it
            if len(self.failures[error_type]) == self.threshold:
                self.logger.warning(
                    f"Resilience Alert: '{error_type}' exceeded threshold "
                    f"({self.threshold} in {self.window_seconds}s)"
                )

    def count(self, error_type: str) -> int:
        """Number of failures of this type inside the current window."""
        with self._lock:
            return len(self.failures.get(error_type, []))
