import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_MAX_BYTES = 5 * 1024 * 1024


def parse_rotation(value) -> int:
    """Turn a rotation setting such as "5MB", "512KB" or 1048576 into a byte count."""
    if isinstance(value, int):
        return value
    text = str(value).strip().upper()
    try:
        if text.endswith('MB'):
            return int(text[:-2]) * 1024 * 1024
        if text.endswith('KB'):
            return int(text[:-2]) * 1024
        return int(text)
    except ValueError:
        return DEFAULT_MAX_BYTES


class Logger:
    """Thin named logger with a one-time console + rotating file setup."""

    _configured = False

    @classmethod
    def setup(cls, settings: dict):
        """
        Global configuration for all Logger instances.

        Args:
            settings: The `logging` config section ('level', 'rotation',
                      'backup_count', 'file', 'dir')
        """
        if cls._configured:
            return

        level_name = str(settings.get('level', 'INFO')).upper()
        level = getattr(logging, level_name, logging.INFO)

        root = logging.getLogger()
        root.setLevel(level)

        if not root.handlers:
            formatter = logging.Formatter(
                '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            root.addHandler(console_handler)

            if settings.get('file', True):
                try:
                    log_dir = Path(settings.get('dir') or Path(__file__).parent.parent / "logs")
                    log_dir.mkdir(parents=True, exist_ok=True)

                    file_handler = RotatingFileHandler(
                        log_dir / "catwatch.log",
                        maxBytes=parse_rotation(settings.get('rotation', '5MB')),
                        backupCount=settings.get('backup_count', 5)
                    )
                    file_handler.setFormatter(formatter)
                    root.addHandler(file_handler)
                except OSError as e:
                    print(f"Failed to initialize file logger: {e}")

        # Torch is chatty at DEBUG
        logging.getLogger("torch").setLevel(max(level, logging.INFO))
        cls._configured = True

    def __init__(self, name: str = "Catwatch"):
        self.logger = logging.getLogger(name)

    def info(self, message: str):
        self.logger.info(message)

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str):
        self.logger.error(message)

    def debug(self, message: str):
        self.logger.debug(message)

    def critical(self, message: str):
        self.logger.critical(message)
