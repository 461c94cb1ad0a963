"""
3D Math Helpers

Vector and rotation utilities shared by the solver, gait and gaze code.

Conventions:
- Right-handed world with +Y up
- Canonical frame: FORWARD = +Z, UP = +Y, RIGHT = FORWARD x UP = -X
- Quaternions are pyrr quaternions in (x, y, z, w) order
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

import numpy as np
from pyrr import Quaternion, Vector3, quaternion, vector, vector3

EPSILON = 1e-9

FORWARD = np.array([0.0, 0.0, 1.0])
BACK = -FORWARD
UP = np.array([0.0, 1.0, 0.0])
DOWN = -UP
RIGHT = np.array([-1.0, 0.0, 0.0])
LEFT = -RIGHT
ZERO = np.zeros(3)

AXES = {
    "forward": FORWARD,
    "back": BACK,
    "up": UP,
    "down": DOWN,
    "right": RIGHT,
    "left": LEFT,
}


def vec3(value: Iterable[float]) -> np.ndarray:
    """Convert an iterable to a float64 array of three components."""

    data = np.asarray(value, dtype=np.float64).reshape(-1)
    if data.shape != (3,):
        raise ValueError(f"Expected 3 components, got {tuple(data)}")
    return data.copy()


def quat(value: Optional[Iterable[float]] = None) -> np.ndarray:
    """Convert an iterable to a float64 (x, y, z, w) quaternion, identity when None."""

    if value is None:
        return quaternion.create(dtype=np.float64)
    data = np.asarray(value, dtype=np.float64).reshape(-1)
    if data.shape != (4,):
        raise ValueError(f"Expected 4 components for quaternion, got {tuple(data)}")
    return data.copy()


def axis(name: str) -> np.ndarray:
    """Look up a canonical axis by name ('forward', 'up', 'left', ...)."""

    try:
        return AXES[name].copy()
    except KeyError:
        raise ValueError(f"Unknown axis name: {name}") from None


# ----------------------------------------------------------------------------
# Vectors
# ----------------------------------------------------------------------------

def length(v) -> float:
    return float(vector.length(np.asarray(v, dtype=np.float64)))


def normalize(v, fallback=None) -> np.ndarray:
    """
    Return the unit vector of ``v``.

    Degenerate (zero-length) input returns ``fallback`` if given, otherwise
    the zero vector. Never divides by zero.
    """
    data = np.asarray(v, dtype=np.float64)
    if length(data) < EPSILON:
        return ZERO.copy() if fallback is None else vec3(fallback)
    return vector.normalise(data)


def distance(a, b) -> float:
    return length(np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64))


def direction(source, target, fallback=None) -> np.ndarray:
    """Unit direction from ``source`` to ``target``."""
    return normalize(np.asarray(target, dtype=np.float64) - np.asarray(source, dtype=np.float64), fallback)


def flatten(v) -> np.ndarray:
    """Drop the vertical component (project onto the ground plane)."""
    flat = vec3(v)
    flat[1] = 0.0
    return flat


def cross(a, b) -> np.ndarray:
    return vector3.cross(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64))


def move_towards(current, target, fraction: float) -> np.ndarray:
    """Linear blend from ``current`` toward ``target`` by ``fraction``."""
    current = vec3(current)
    return current + (vec3(target) - current) * fraction


def any_perpendicular(v) -> np.ndarray:
    """Some unit vector perpendicular to ``v``."""
    unit = normalize(v, FORWARD)
    candidate = cross(unit, UP)
    if length(candidate) < 1e-6:
        candidate = cross(unit, RIGHT)
    return normalize(candidate)


def rotate_towards(current, target, fraction: float) -> np.ndarray:
    """
    Rotate unit direction ``current`` toward ``target`` by a fraction of the angle between them.

    Args:
        current: Start direction (normalized internally)
        target: Goal direction (normalized internally)
        fraction: 0 keeps ``current``, 1 returns ``target``

    Returns:
        Unit direction
    """
    a = normalize(current, FORWARD)
    b = normalize(target, a)
    cos_angle = float(np.clip(np.dot(a, b), -1.0, 1.0))
    angle = math.acos(cos_angle)
    if angle < 1e-7:
        return b

    rotation_axis = cross(a, b)
    if length(rotation_axis) < 1e-7:
        # Opposite directions: any perpendicular axis is a valid great circle
        rotation_axis = any_perpendicular(a)

    rotation = quaternion.create_from_axis_rotation(normalize(rotation_axis), angle * fraction, dtype=np.float64)
    return normalize(rotate_vector(rotation, a))


def reflect_over_plane(point, normal, plane_point=None) -> np.ndarray:
    """Mirror ``point`` across the plane with ``normal`` passing through ``plane_point``."""
    n = normalize(normal)
    p = vec3(point)
    origin = ZERO if plane_point is None else vec3(plane_point)
    offset = float(np.dot(p - origin, n))
    return p - 2.0 * offset * n


def normal_from_points(a, b, c) -> np.ndarray:
    """
    Unit normal of the plane through three points.

    Point order sets the handedness: (b - a) x (c - a).
    Collinear points return the zero vector.
    """
    a = vec3(a)
    return normalize(cross(vec3(b) - a, vec3(c) - a))


def quadratic_bezier(start, control, end, t: float) -> np.ndarray:
    """Point on a quadratic Bezier curve at parameter ``t``."""
    u = 1.0 - t
    return u * u * vec3(start) + 2.0 * u * t * vec3(control) + t * t * vec3(end)


# ----------------------------------------------------------------------------
# Scalars
# ----------------------------------------------------------------------------

def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def smoothstep01(x: float) -> float:
    """Hermite smoothstep on [0, 1] (zero slope at both ends)."""
    x = clamp01(x)
    return x * x * (3.0 - 2.0 * x)


def sin_cycle01(x: float) -> float:
    """One full sine period over [0, 1], returns -1..1."""
    return math.sin(2.0 * math.pi * x)


# ----------------------------------------------------------------------------
# Rotations
# ----------------------------------------------------------------------------

def rotate_vector(rotation, v) -> np.ndarray:
    """Rotate vector ``v`` by quaternion ``rotation``."""
    return quaternion.apply_to_vector(quat(rotation), vec3(v))


def multiply(q1, q2) -> np.ndarray:
    """Quaternion product ``q1 * q2`` (apply ``q2`` first, then ``q1``)."""
    return quaternion.cross(quat(q1), quat(q2))


def inverse(q) -> np.ndarray:
    return quaternion.conjugate(quaternion.normalise(quat(q)))


def slerp(q1, q2, t: float) -> np.ndarray:
    """Shortest-path spherical interpolation between two rotations."""
    a = quaternion.normalise(quat(q1))
    b = quaternion.normalise(quat(q2))
    if float(np.dot(a, b)) < 0.0:
        b = -b
    return quaternion.normalise(quaternion.slerp(a, b, clamp01(t)))


def look_rotation(forward, up=UP) -> np.ndarray:
    """
    Rotation that maps canonical FORWARD onto ``forward`` and keeps UP as close to ``up`` as possible.

    If ``up`` is parallel to ``forward`` a perpendicular up is chosen.

    Returns:
        Quaternion as float64 array (x, y, z, w)
    """
    f = normalize(forward, FORWARD)
    right = cross(f, normalize(up, UP))
    if length(right) < 1e-6:
        right = cross(f, any_perpendicular(f))
    right = normalize(right)
    true_up = cross(right, f)
    # Canonical RIGHT is -X, so the X column is -right
    return quaternion.normalise(quaternion.create_from_matrix(np.column_stack((-right, true_up, f))))


def to_vector3(v) -> Vector3:
    """Wrap an array as a pyrr Vector3 for the public API."""
    return Vector3(vec3(v))


def to_quaternion(q) -> Quaternion:
    """Wrap an array as a pyrr Quaternion for the public API."""
    return Quaternion(quat(q))
