"""
Global constants for the Catwatch Node application.
"""
from pathlib import Path

# Project Structure
BASE_DIR = Path(__file__).parent.parent
CONFIGS_DIR = BASE_DIR / "configs"
MODELS_DIR = BASE_DIR / "models"
LOGS_DIR = BASE_DIR / "logs"

# Model
DEFAULT_MODEL_PATH = MODELS_DIR / "is_lizzy_the_cat.pt"
DEFAULT_INPUT_SIZE = 224
INPUT_CHANNELS = 3

# Decision policy
DEFAULT_THRESHOLD = 0.9
DEFAULT_CLASS_COUNT = 2
DEFAULT_TARGET_LABEL = "Lizzy"
INITIAL_DISPLAY_TEXT = "Analyzing..."

# Camera
DEFAULT_CAMERA_WIDTH = 640
DEFAULT_CAMERA_HEIGHT = 480
DEFAULT_FPS = 30

# Display Settings
DEFAULT_WINDOW_WIDTH = 960
DEFAULT_WINDOW_HEIGHT = 720
MIN_WINDOW_WIDTH = 480
MIN_WINDOW_HEIGHT = 360
