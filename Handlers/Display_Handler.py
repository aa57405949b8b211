"""
Display Handler - PyQt6 window with the live camera preview and the
classification result badge.
"""
import sys
from queue import Queue, Empty
from threading import Event
from typing import Optional

import numpy as np
from PyQt6.QtWidgets import QApplication, QMainWindow, QWidget, QVBoxLayout, QLabel
from PyQt6.QtCore import Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QImage, QPixmap

from utils.constants import (DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT,
                             MIN_WINDOW_WIDTH, MIN_WINDOW_HEIGHT, INITIAL_DISPLAY_TEXT)
from utils.logger import Logger


class DisplayHandler:
    """Owns the QApplication and the main window."""

    def __init__(self, config, viewer_queue: Optional[Queue] = None, stop_event: Optional[Event] = None):
        """
        Args:
            config: Application Config
            viewer_queue: Queue of RGB preview frames from the AnalysisStage
            stop_event: Shared shutdown event; the window closes when it is set
        """
        self.config = config
        self.stop_event = stop_event
        self.app = QApplication.instance() or QApplication(sys.argv)
        self.window = MainWindow(config, viewer_queue=viewer_queue, stop_event=stop_event)

    def start(self) -> int:
        """Starts the GUI event loop. This call blocks until the window closes."""
        self.window.show()
        return self.app.exec()

    def show_text(self, text: str):
        """Thread-safe update of the result badge."""
        self.window.result_signal.emit(text)

    def stop(self):
        self.window.stop_signal.emit()


class MainWindow(QMainWindow):
    """Camera preview with the result text at the bottom."""

    result_signal = pyqtSignal(str)
    stop_signal = pyqtSignal()

    def __init__(self, config, viewer_queue: Optional[Queue] = None, stop_event: Optional[Event] = None):
        super().__init__()
        self.config = config
        self.viewer_queue = viewer_queue
        self.stop_event = stop_event
        self.logger = Logger("DisplayWindow")

        self._init_ui()
        self.result_signal.connect(self.set_result_text)
        self.stop_signal.connect(self.close)

        self._timer = QTimer(self)
        self._timer.timeout.connect(self._poll)
        self._timer.start(33)  # ~30 Hz

    def _init_ui(self):
        self.setWindowTitle("Is this Lizzy the cat?")
        width = self.config.get_int('display.width', DEFAULT_WINDOW_WIDTH)
        height = self.config.get_int('display.height', DEFAULT_WINDOW_HEIGHT)
        self.resize(width, height)
        self.setMinimumSize(MIN_WINDOW_WIDTH, MIN_WINDOW_HEIGHT)

        self.preview_label = QLabel("Waiting for camera …")
        self.preview_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.preview_label.setStyleSheet("background: #000; color: #888; font-size: 16px;")

        self.result_label = QLabel(INITIAL_DISPLAY_TEXT)
        self.result_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.result_label.setStyleSheet("""
            background: rgba(0, 0, 0, 178); color: #FFFFFF; font-size: 24px;
            border-radius: 12px; padding: 8px 16px;
        """)

        central = QWidget()
        central.setStyleSheet("background: #000;")
        layout = QVBoxLayout(central)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.addWidget(self.preview_label, stretch=1)
        layout.addWidget(self.result_label, stretch=0, alignment=Qt.AlignmentFlag.AlignHCenter)
        self.setCentralWidget(central)

    def set_result_text(self, text: str):
        self.result_label.setText(text)

    def _poll(self):
        """Show the newest preview frame and close once shutdown was requested."""
        if self.stop_event is not None and self.stop_event.is_set():
            self.close()
            return
        if self.viewer_queue is None:
            return

        latest: Optional[np.ndarray] = None
        while True:
            try:
                latest = self.viewer_queue.get_nowait()
            except Empty:
                break
        if latest is not None:
            self._display_frame(latest)

    def _display_frame(self, rgb: np.ndarray):
        """Convert an RGB numpy frame to a QPixmap scaled into the preview label."""
        rgb = np.ascontiguousarray(rgb)
        h, w, ch = rgb.shape
        q_img = QImage(rgb.data, w, h, ch * w, QImage.Format.Format_RGB888)
        pixmap = QPixmap.fromImage(q_img.copy())
        scaled = pixmap.scaled(
            self.preview_label.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        self.preview_label.setPixmap(scaled)

    def closeEvent(self, event):
        self._timer.stop()
        if self.stop_event is not None:
            self.stop_event.set()
        super().closeEvent(event)
