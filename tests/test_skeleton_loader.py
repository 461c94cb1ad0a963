"""Tests for skeleton loading"""

import json

import pytest
import numpy as np

from procanim.config.settings import DEFAULT_CHARACTER_PATH
from procanim.core import math3d
from procanim.loaders.skeleton_loader import CharacterAssetError, load_skeleton, skeleton_from_dict


def test_load_bundled_lizard():
    """Bundled asset loads with world-space joints"""
    skeleton = load_skeleton(DEFAULT_CHARACTER_PATH)
    assert skeleton.name == "lizzy"
    assert len(skeleton) == 38
    assert [root.name for root in skeleton.root_joints] == ["skeleton"]
    assert np.allclose(np.asarray(skeleton.get_joint("Root_M").world_position), [0.0, 0.1, -0.1])
    assert np.allclose(np.asarray(skeleton.get_joint("Ankle_L").world_position), [0.12, 0.035, -0.1])
    assert np.allclose(np.asarray(skeleton.get_joint("Tail15_M").world_position), [0.0, 0.035, -0.9])


def test_load_relative_path():
    """Relative paths resolve against the project root"""
    skeleton = load_skeleton("assets/characters/lizzy.json")
    assert skeleton.get_joint("Neck_M") is not None


def test_local_space_definitions():
    """Local positions compose through parent rotations"""
    quarter = math3d.look_rotation(math3d.LEFT, math3d.UP)
    skeleton = skeleton_from_dict({
        "name": "pair",
        "joints": [
            {"name": "a", "position": [1.0, 0.0, 0.0], "rotation": list(quarter)},
            {"name": "b", "parent": "a", "position": [0.0, 0.0, 1.0]},
        ],
    })
    assert np.allclose(np.asarray(skeleton.get_joint("b").world_position), [2.0, 0.0, 0.0])


def test_missing_asset_raises(tmp_path):
    with pytest.raises(CharacterAssetError):
        load_skeleton(tmp_path / "nope.json")


def test_malformed_asset_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(CharacterAssetError):
        load_skeleton(path)


def test_unknown_parent_raises():
    with pytest.raises(CharacterAssetError):
        skeleton_from_dict({"joints": [{"name": "a", "parent": "ghost"}]})


def test_duplicate_joint_raises():
    with pytest.raises(CharacterAssetError):
        skeleton_from_dict({"joints": [{"name": "a"}, {"name": "a"}]})


def test_empty_skeleton_raises():
    with pytest.raises(CharacterAssetError):
        skeleton_from_dict({"name": "empty", "joints": []})


def test_wrong_component_count_raises():
    with pytest.raises(CharacterAssetError):
        skeleton_from_dict({"joints": [{"name": "a", "position": [1.0, 2.0]}]})


def test_non_numeric_component_raises():
    """Components that are not numbers surface as an asset error"""
    with pytest.raises(CharacterAssetError):
        skeleton_from_dict({"joints": [{"name": "a", "position": [1.0, "up", 0.0]}]})
    with pytest.raises(CharacterAssetError):
        skeleton_from_dict({"joints": [{"name": "a", "rotation": [0.0, 0.0, 0.0, None]}]})


def test_non_object_descriptor_raises(tmp_path):
    """Top-level JSON must be an object with a list of joint objects"""
    path = tmp_path / "list.json"
    path.write_text('[{"name": "a"}]', encoding="utf-8")
    with pytest.raises(CharacterAssetError):
        load_skeleton(path)
    with pytest.raises(CharacterAssetError):
        skeleton_from_dict({"joints": {"name": "a"}})
    with pytest.raises(CharacterAssetError):
        skeleton_from_dict({"joints": ["a"]})


def test_reset_pose_restores_bind_pose(tmp_path):
    """Bind pose captured on load is restored by reset_pose"""
    path = tmp_path / "pair.json"
    path.write_text(json.dumps({
        "joints": [
            {"name": "a", "position": [0.0, 0.0, 0.0]},
            {"name": "b", "parent": "a", "position": [0.0, 1.0, 0.0]},
        ]
    }), encoding="utf-8")
    skeleton = load_skeleton(path)

    skeleton.get_joint("a").local_rotation = math3d.look_rotation(math3d.UP, math3d.BACK)
    assert not np.allclose(np.asarray(skeleton.get_joint("b").world_position), [0.0, 1.0, 0.0])

    skeleton.reset_pose()
    assert np.allclose(np.asarray(skeleton.get_joint("b").world_position), [0.0, 1.0, 0.0])
