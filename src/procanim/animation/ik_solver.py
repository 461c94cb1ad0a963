"""
IK Solver

Two interchangeable position solvers for joint chains:

- ``solve_fabrik``: iterative forward/backward reaching for any chain length
- ``solve_two_bone``: closed-form law-of-cosines solve for two-bone limbs

Both take plain arrays and return new joint positions; rotations are
derived afterwards by :mod:`procanim.animation.pole`.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from ..config.settings import IK_DEFAULT_ITERATIONS, IK_MIN_BONE_LENGTH, IK_TOLERANCE
from ..core import math3d


def bone_lengths(points: Sequence) -> np.ndarray:
    """Distances between consecutive points."""
    pts = np.asarray(points, dtype=np.float64)
    return np.linalg.norm(pts[1:] - pts[:-1], axis=1)


def _place_straight(root: np.ndarray, lengths: np.ndarray, heading: np.ndarray) -> np.ndarray:
    """Lay the chain out fully extended from ``root`` along ``heading``."""
    offsets = np.concatenate(([0.0], np.cumsum(lengths)))
    return root + np.outer(offsets, heading)


def _prebend(points: np.ndarray, total_length: float, bend_hint: Optional[np.ndarray]) -> np.ndarray:
    """
    Nudge interior joints off the root-tip line when the chain is straight.

    A perfectly straight chain cannot fold under forward/backward reaching,
    so interior joints are displaced slightly toward ``bend_hint``.
    """
    if len(points) < 3:
        return points

    root = points[0]
    axis = math3d.direction(root, points[-1])
    relative = points[1:-1] - root
    perpendicular = relative - np.outer(relative @ axis, axis)
    if np.max(np.linalg.norm(perpendicular, axis=1)) > 1e-4 * total_length:
        return points

    hint = None if bend_hint is None else math3d.vec3(bend_hint)
    if hint is not None:
        hint = hint - axis * float(np.dot(hint, axis))
    if hint is None or math3d.length(hint) < 1e-9:
        hint = math3d.any_perpendicular(axis)
    hint = math3d.normalize(hint)

    bent = points.copy()
    bent[1:-1] += hint * (1e-3 * total_length)
    return bent


def solve_fabrik(
    points: Sequence,
    target,
    iterations: int = IK_DEFAULT_ITERATIONS,
    tolerance: float = IK_TOLERANCE,
    lengths: Optional[Sequence[float]] = None,
    bend_hint=None,
) -> np.ndarray:
    """
    Forward And Backward Reaching IK.

    ``points[0]`` is the anchored root. Each iteration runs a forward pass
    (tip snapped to the target, every predecessor pulled along the
    direction to its successor at its bone length) and a backward pass
    (root reset to its anchor, every successor pushed back out at its bone
    length). Bone lengths are preserved exactly.

    Args:
        points: Current joint positions, root first
        target: World position for the last point
        iterations: Maximum number of forward/backward passes
        tolerance: Stop once the tip is this close to the target
        lengths: Bone lengths, measured from ``points`` when omitted
        bend_hint: Direction to fold toward when the chain starts straight

    Returns:
        New joint positions (same shape as ``points``)
    """
    positions = np.array(points, dtype=np.float64)
    target = math3d.vec3(target)
    lengths = bone_lengths(positions) if lengths is None else np.asarray(lengths, dtype=np.float64)
    total_length = float(np.sum(lengths))

    anchor = positions[0].copy()
    to_target = target - anchor
    reach = math3d.length(to_target)

    # Unreachable: fully extended toward the target
    if reach >= total_length:
        heading = math3d.normalize(to_target, math3d.direction(anchor, positions[-1], math3d.FORWARD))
        return _place_straight(anchor, lengths, heading)

    if iterations <= 0 or math3d.distance(positions[-1], target) <= tolerance:
        return positions

    positions = _prebend(positions, total_length, bend_hint)
    count = len(positions)

    for _ in range(max(0, int(iterations))):
        if math3d.distance(positions[-1], target) <= tolerance:
            break

        # Forward pass: tip to root
        positions[-1] = target
        for i in range(count - 2, -1, -1):
            heading = math3d.direction(positions[i + 1], positions[i], math3d.FORWARD)
            positions[i] = positions[i + 1] + heading * lengths[i]

        # Backward pass: root to tip
        positions[0] = anchor
        for i in range(count - 1):
            heading = math3d.direction(positions[i], positions[i + 1], math3d.FORWARD)
            positions[i + 1] = positions[i] + heading * lengths[i]

    return positions


def solve_two_bone(
    root,
    target,
    upper_length: float,
    lower_length: float,
    bend_direction,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Analytic two-bone IK (law of cosines).

    The middle joint is placed in the plane spanned by the root-target
    line and ``bend_direction``, on the ``bend_direction`` side. Out of
    reach targets give a fully extended limb pointing at the target; the
    cosine is clamped to [-1, 1] so no domain error can occur.

    Args:
        root: Anchored first joint position
        target: Desired end position
        upper_length: Root to middle joint length
        lower_length: Middle joint to end length
        bend_direction: Which way the middle joint should point

    Returns:
        (middle joint position, end position)
    """
    root = math3d.vec3(root)
    to_target = math3d.vec3(target) - root
    reach = math3d.length(to_target)
    heading = math3d.normalize(to_target, bend_direction)
    if math3d.length(heading) < 0.5:
        heading = math3d.FORWARD.copy()

    # The end can never be closer than |a - b| nor farther than a + b
    reach = min(max(reach, abs(upper_length - lower_length), IK_MIN_BONE_LENGTH), upper_length + lower_length)

    cos_angle = (upper_length ** 2 + reach ** 2 - lower_length ** 2) / (2.0 * upper_length * reach)
    cos_angle = max(-1.0, min(1.0, cos_angle))
    sin_angle = math.sqrt(1.0 - cos_angle * cos_angle)

    bend = math3d.vec3(bend_direction)
    bend = bend - heading * float(np.dot(bend, heading))
    bend = math3d.normalize(bend, math3d.any_perpendicular(heading))

    middle = root + (heading * cos_angle + bend * sin_angle) * upper_length
    end = root + heading * reach
    return middle, end
