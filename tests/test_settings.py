"""Tests for rig setting overrides"""

import json
import logging

from procanim.config import settings


def write_rig(tmp_path, payload):
    path = tmp_path / "rig.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_missing_file_gives_no_overrides(tmp_path):
    assert settings._load_rig_overrides(tmp_path / "absent.json") == {}


def test_known_keys_are_converted(tmp_path):
    """Numeric strings are accepted; unknown keys are dropped"""
    path = write_rig(tmp_path, {"TURN_SPEED_PER_SEC": "2.5", "MIN_STEP_DISTANCE": 1, "NOT_A_SETTING": 3.0})
    assert settings._load_rig_overrides(path) == {"TURN_SPEED_PER_SEC": 2.5, "MIN_STEP_DISTANCE": 1.0}


def test_top_level_list_is_rejected(tmp_path, caplog):
    path = write_rig(tmp_path, [1, 2])
    with caplog.at_level(logging.ERROR, logger=settings.__name__):
        assert settings._load_rig_overrides(path) == {}
    assert "must be a JSON object" in caplog.text


def test_non_numeric_value_is_skipped(tmp_path, caplog):
    """A bad value drops only its own key"""
    path = write_rig(tmp_path, {"TURN_SPEED_PER_SEC": "fast", "SPINE_BEND_FACTOR": None, "TAIL_BEND_FACTOR": 0.4})
    with caplog.at_level(logging.ERROR, logger=settings.__name__):
        overrides = settings._load_rig_overrides(path)
    assert overrides == {"TAIL_BEND_FACTOR": 0.4}
    assert "TURN_SPEED_PER_SEC" in caplog.text
    assert "SPINE_BEND_FACTOR" in caplog.text


def test_invalid_json_is_ignored(tmp_path):
    path = tmp_path / "rig.json"
    path.write_text("{ broken", encoding="utf-8")
    assert settings._load_rig_overrides(path) == {}
