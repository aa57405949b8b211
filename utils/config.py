"""
Configuration management for Catwatch Node.
"""
import copy
import json
import os
from pathlib import Path
from typing import Dict, Any, Optional

from utils import constants
from utils.failures import ConfigError

DEFAULTS: Dict[str, Any] = {
    "model": {
        "path": str(constants.DEFAULT_MODEL_PATH),
        "device": "auto",
        "input_size": constants.DEFAULT_INPUT_SIZE,
    },
    "decision": {
        "threshold": constants.DEFAULT_THRESHOLD,
        "class_count": constants.DEFAULT_CLASS_COUNT,
        "target_label": constants.DEFAULT_TARGET_LABEL,
    },
    "decoder": {
        "swap_chroma": False,
    },
    "camera": {
        "width": constants.DEFAULT_CAMERA_WIDTH,
        "height": constants.DEFAULT_CAMERA_HEIGHT,
        "fps": constants.DEFAULT_FPS,
        "loop_video": True,
    },
    "display": {
        "width": constants.DEFAULT_WINDOW_WIDTH,
        "height": constants.DEFAULT_WINDOW_HEIGHT,
    },
    "logging": {
        "level": "INFO",
        "rotation": "5MB",
        "backup_count": 5,
        "file": True,
    },
    "failures": {
        "threshold": 5,
        "window_seconds": 300,
    },
}

# Environment variable -> dotted config key
ENV_OVERRIDES = {
    "CATWATCH_MODEL_PATH": "model.path",
    "CATWATCH_DEVICE": "model.device",
    "CATWATCH_THRESHOLD": "decision.threshold",
}


class Config:
    """Configuration manager: built-in defaults, then configs/*.json, then environment."""

    def __init__(self, configs_dir: Optional[str] = None, env: Optional[Dict[str, str]] = None):
        """
        Args:
            configs_dir: Directory containing JSON configs (defaults to ./configs)
            env: Environment mapping to read overrides from (defaults to os.environ)
        """
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULTS)

        configs_dir = Path(configs_dir) if configs_dir else constants.CONFIGS_DIR

        if configs_dir.exists() and configs_dir.is_dir():
            for config_file in sorted(configs_dir.glob("*.json")):
                self.load_from_file(str(config_file))

        self._load_from_env(os.environ if env is None else env)

    def _load_from_env(self, env: Dict[str, str]):
        """Apply environment variable overrides."""
        for var, key in ENV_OVERRIDES.items():
            if env.get(var):
                self.set(key, env[var])

    def load_from_file(self, path: str):
        """Merge a JSON file into the current configuration."""
        try:
            with open(path, 'r') as f:
                user_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}", critical=True) from e

        if not isinstance(user_config, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object", critical=True)
        self._merge_config(user_config)

    def _merge_config(self, user_config: Dict[str, Any]):
        """Merge user config with defaults recursively."""
        def update(d, u):
            for k, v in u.items():
                if isinstance(v, dict):
                    d[k] = update(d.get(k, {}), v)
                else:
                    d[k] = v
            return d

        update(self.config, user_config)

    def set(self, key: str, value: Any):
        """Set a dotted key, creating intermediate sections."""
        *parents, leaf = key.split('.')
        node = self.config
        for k in parents:
            node = node.setdefault(k, {})
        node[leaf] = value

    def get_int(self, key: str, default: int = 0) -> int:
        """Get config value as integer."""
        val = self.get(key, default)
        try:
            return int(val)
        except (ValueError, TypeError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get config value as float."""
        val = self.get(key, default)
        try:
            return float(val)
        except (ValueError, TypeError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get config value as boolean."""
        val = self.get(key, default)
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val.lower() in ('true', '1', 'yes', 'on')
        return bool(val)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value
