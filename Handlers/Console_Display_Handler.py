"""Console Display Handler - headless display surface that logs result changes."""
from utils.constants import INITIAL_DISPLAY_TEXT
from utils.logger import Logger


class ConsoleDisplay:
    """Logs the displayed text whenever it changes."""

    def __init__(self):
        self.logger = Logger("ConsoleDisplay")
        self.text = INITIAL_DISPLAY_TEXT

    def show_text(self, text: str) -> None:
        if text != self.text:
            self.text = text
            self.logger.info(text)
