"""Tests for vector and rotation helpers"""

import math

import pytest
import numpy as np

from procanim.core import math3d


def test_canonical_axes():
    """Right is forward x up"""
    assert np.allclose(math3d.cross(math3d.FORWARD, math3d.UP), math3d.RIGHT)
    assert np.allclose(math3d.LEFT, [1.0, 0.0, 0.0])


def test_vec3_rejects_wrong_arity():
    """Vectors must have exactly three components"""
    with pytest.raises(ValueError):
        math3d.vec3([1.0, 2.0])


def test_normalize_zero_vector():
    """Zero-length input never divides by zero"""
    assert np.allclose(math3d.normalize([0.0, 0.0, 0.0]), [0.0, 0.0, 0.0])
    assert np.allclose(math3d.normalize([0.0, 0.0, 0.0], math3d.UP), math3d.UP)
    assert np.allclose(math3d.normalize([3.0, 0.0, 4.0]), [0.6, 0.0, 0.8])


def test_flatten_drops_height():
    assert np.allclose(math3d.flatten([1.0, 5.0, -2.0]), [1.0, 0.0, -2.0])


def test_look_rotation_identity():
    """Looking along canonical forward with canonical up is no rotation"""
    q = math3d.look_rotation(math3d.FORWARD, math3d.UP)
    assert np.allclose(math3d.rotate_vector(q, [1.0, 2.0, 3.0]), [1.0, 2.0, 3.0])


def test_look_rotation_maps_forward_and_up():
    """Forward lands on the requested direction and up stays up"""
    direction = math3d.normalize([1.0, 0.0, 1.0])
    q = math3d.look_rotation(direction, math3d.UP)
    assert np.allclose(math3d.rotate_vector(q, math3d.FORWARD), direction)
    assert np.allclose(math3d.rotate_vector(q, math3d.UP), math3d.UP)


@pytest.mark.parametrize("forward, up", [
    ([1.0, 0.0, 0.0], [0.0, 1.0, 0.0]),
    ([0.0, 0.0, -1.0], [0.0, 1.0, 0.0]),
    ([0.3, -0.8, 0.5], [0.0, 1.0, 0.0]),
    ([-0.2, 0.1, -0.9], [1.0, 1.0, 0.0]),
    ([0.0, 1.0, 0.2], [0.0, 0.0, -1.0]),
])
def test_look_rotation_builds_orthonormal_frame(forward, up):
    """Canonical axes map onto the forward/up/right frame built from the inputs"""
    q = math3d.look_rotation(forward, up)
    f = math3d.normalize(forward)
    right = math3d.normalize(math3d.cross(f, math3d.normalize(up)))
    true_up = math3d.cross(right, f)

    assert math.isclose(np.linalg.norm(q), 1.0)
    assert np.allclose(math3d.rotate_vector(q, math3d.FORWARD), f)
    assert np.allclose(math3d.rotate_vector(q, math3d.UP), true_up)
    assert np.allclose(math3d.rotate_vector(q, math3d.RIGHT), right)


def test_look_rotation_parallel_up():
    """Up parallel to forward still yields a valid rotation"""
    q = math3d.look_rotation(math3d.UP, math3d.UP)
    assert np.allclose(math3d.rotate_vector(q, math3d.FORWARD), math3d.UP)
    assert math.isclose(np.linalg.norm(q), 1.0)


def test_rotate_towards_half_angle():
    """Half way from forward to left is the 45 degree diagonal"""
    result = math3d.rotate_towards(math3d.FORWARD, math3d.LEFT, 0.5)
    assert np.allclose(result, [math.sqrt(0.5), 0.0, math.sqrt(0.5)])


def test_rotate_towards_opposite_directions():
    """Opposite directions still rotate by the requested fraction"""
    result = math3d.rotate_towards(math3d.FORWARD, math3d.BACK, 0.5)
    assert math.isclose(np.dot(result, math3d.FORWARD), 0.0, abs_tol=1e-9)
    assert math.isclose(np.linalg.norm(result), 1.0)


def test_reflect_over_plane():
    assert np.allclose(math3d.reflect_over_plane([1.0, 2.0, 3.0], [1.0, 0.0, 0.0]), [-1.0, 2.0, 3.0])
    assert np.allclose(
        math3d.reflect_over_plane([3.0, 0.0, 0.0], [1.0, 0.0, 0.0], plane_point=[1.0, 0.0, 0.0]),
        [-1.0, 0.0, 0.0],
    )


def test_normal_from_points_is_unit_and_orthogonal():
    """Normal of three non-collinear points is orthogonal to both edges"""
    a = np.array([0.1, 0.2, 0.3])
    b = np.array([1.0, 0.5, -0.2])
    c = np.array([-0.4, 1.2, 0.8])
    n = math3d.normal_from_points(a, b, c)
    assert math.isclose(np.linalg.norm(n), 1.0)
    assert math.isclose(np.dot(n, b - a), 0.0, abs_tol=1e-9)
    assert math.isclose(np.dot(n, c - a), 0.0, abs_tol=1e-9)


def test_normal_from_collinear_points_is_zero():
    n = math3d.normal_from_points([0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0])
    assert np.allclose(n, [0.0, 0.0, 0.0])


def test_quadratic_bezier():
    """Curve starts, ends and bends through the control point's pull"""
    start, control, end = [0.0, 0.0, 0.0], [1.0, 2.0, 0.0], [2.0, 0.0, 0.0]
    assert np.allclose(math3d.quadratic_bezier(start, control, end, 0.0), start)
    assert np.allclose(math3d.quadratic_bezier(start, control, end, 1.0), end)
    assert np.allclose(math3d.quadratic_bezier(start, control, end, 0.5), [1.0, 1.0, 0.0])


def test_smoothstep01():
    assert math3d.smoothstep01(0.0) == 0.0
    assert math3d.smoothstep01(1.0) == 1.0
    assert math.isclose(math3d.smoothstep01(0.5), 0.5)
    assert math3d.smoothstep01(2.0) == 1.0


def test_slerp_takes_shortest_path():
    """Negated quaternion is the same rotation; slerp stays put"""
    q = math3d.look_rotation(math3d.LEFT, math3d.UP)
    mid = math3d.slerp(q, -q, 0.5)
    assert np.allclose(math3d.rotate_vector(mid, math3d.FORWARD), math3d.LEFT)


def test_slerp_halfway():
    identity = math3d.quat()
    quarter = math3d.look_rotation(math3d.LEFT, math3d.UP)
    mid = math3d.slerp(identity, quarter, 0.5)
    assert np.allclose(math3d.rotate_vector(mid, math3d.FORWARD), math3d.normalize([1.0, 0.0, 1.0]))


def test_multiply_and_inverse():
    q = math3d.look_rotation(math3d.normalize([1.0, 1.0, 0.0]), math3d.UP)
    assert np.allclose(math3d.rotate_vector(math3d.multiply(q, math3d.inverse(q)), [1.0, 2.0, 3.0]), [1.0, 2.0, 3.0])
