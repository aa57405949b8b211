import time

import pytest

from utils.config import Config
from utils.failures import ConfigError, DecodeFailure, FailureManager, InferenceFailure
from utils.logger import parse_rotation


def test_defaults_without_config_files(tmp_path):
    config = Config(str(tmp_path), env={})

    assert config.get_float('decision.threshold') == 0.9
    assert config.get_int('decision.class_count') == 2
    assert config.get_int('model.input_size') == 224
    assert config.get_bool('decoder.swap_chroma') is False
    assert config.get('missing.key', 'fallback') == 'fallback'


def test_json_files_merge_in_order(tmp_path):
    (tmp_path / "a.json").write_text('{"camera": {"fps": 15, "width": 320}}')
    (tmp_path / "b.json").write_text('{"camera": {"fps": 10}}')

    config = Config(str(tmp_path), env={})

    assert config.get_int('camera.fps') == 10
    assert config.get_int('camera.width') == 320
    assert config.get_int('camera.height') == 480


def test_environment_overrides_files(tmp_path):
    (tmp_path / "a.json").write_text('{"decision": {"threshold": 0.7}}')

    config = Config(str(tmp_path), env={"CATWATCH_THRESHOLD": "0.95", "CATWATCH_MODEL_PATH": "/m.pt"})

    assert config.get_float('decision.threshold') == 0.95
    assert config.get('model.path') == "/m.pt"


def test_malformed_json_raises_config_error(tmp_path):
    (tmp_path / "bad.json").write_text('{"camera": ')

    with pytest.raises(ConfigError):
        Config(str(tmp_path), env={})


def test_typed_getters_fall_back_on_garbage(tmp_path):
    config = Config(str(tmp_path), env={})
    config.set('camera.fps', 'fast')
    config.set('decoder.swap_chroma', 'yes')

    assert config.get_int('camera.fps', 30) == 30
    assert config.get_bool('decoder.swap_chroma') is True


@pytest.mark.parametrize("value,expected", [("5MB", 5 * 1024 * 1024), ("512KB", 512 * 1024), (2048, 2048), ("lots", 5 * 1024 * 1024)])
def test_parse_rotation(value, expected):
    assert parse_rotation(value) == expected


def test_failure_manager_counts_per_type():
    manager = FailureManager({'threshold': 2, 'window_seconds': 60})

    manager.record_failure(DecodeFailure("bad frame"))
    manager.record_failure(DecodeFailure("bad frame"))
    manager.record_failure(InferenceFailure("no model"))
    manager.record_failure(ValueError("unexpected"))

    assert manager.count("DecodeFailure") == 2
    assert manager.count("InferenceFailure") == 1
    assert manager.count("ValueError") == 1
    assert manager.count("ConfigError") == 0


def test_failure_manager_forgets_old_failures():
    manager = FailureManager({'window_seconds': 60})
    manager.failures["DecodeFailure"] = [time.time() - 120]

    manager.record_failure(DecodeFailure("bad frame"))

    assert manager.count("DecodeFailure") == 1
