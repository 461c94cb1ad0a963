"""Tests for the Transform hierarchy"""

import numpy as np
from pyrr import Vector3

from procanim.core import math3d
from procanim.core.transform import Transform

QUARTER_TURN_Y = math3d.look_rotation(math3d.LEFT, math3d.UP)  # forward (+Z) -> +X


def test_transform_defaults():
    t = Transform("root")
    assert np.allclose(np.asarray(t.world_position), [0.0, 0.0, 0.0])
    assert np.allclose(np.asarray(t.world_rotation), [0.0, 0.0, 0.0, 1.0])
    assert isinstance(t.world_position, Vector3)


def test_child_world_position_follows_parent_rotation():
    """A child offset is rotated by its parent"""
    parent = Transform("parent", position=(1.0, 0.0, 0.0), rotation=QUARTER_TURN_Y)
    child = Transform("child", parent=parent, position=(0.0, 0.0, 1.0))
    assert np.allclose(np.asarray(child.world_position), [2.0, 0.0, 0.0])


def test_world_setters_convert_to_local():
    """Setting world values keeps them when read back"""
    parent = Transform("parent", position=(0.0, 1.0, 0.0), rotation=QUARTER_TURN_Y)
    child = Transform("child", parent=parent)

    child.world_position = (3.0, 2.0, 1.0)
    child.world_rotation = math3d.quat()

    assert np.allclose(np.asarray(child.world_position), [3.0, 2.0, 1.0])
    assert np.allclose(math3d.rotate_vector(child.world_rotation, math3d.FORWARD), math3d.FORWARD)
    assert np.allclose(np.asarray(child.local_rotation), math3d.inverse(QUARTER_TURN_Y))


def test_point_and_vector_conversions_round_trip():
    node = Transform("node", position=(1.0, 2.0, 3.0), rotation=QUARTER_TURN_Y)
    point = np.array([0.5, -0.5, 2.0])
    assert np.allclose(node.world_to_local_point(node.local_to_world_point(point)), point)
    assert np.allclose(node.local_to_world_vector(math3d.FORWARD), math3d.LEFT)
    assert np.allclose(node.world_to_local_vector(math3d.LEFT), math3d.FORWARD)


def test_add_child_reparents():
    a = Transform("a")
    b = Transform("b")
    child = Transform("child", parent=a)
    b.add_child(child)
    assert child.parent is b
    assert child not in a.children
    assert child in b.children


def test_iter_descendants_depth_first():
    root = Transform("root")
    a = Transform("a", parent=root)
    Transform("a1", parent=a)
    Transform("b", parent=root)
    assert [t.name for t in root.iter_descendants()] == ["a", "a1", "b"]
