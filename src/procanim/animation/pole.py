"""
Pole and Orientation Resolver

Position alone leaves the twist of a solved chain undetermined. This
module places the pole target that fixes the bend plane and turns the
solved joint positions into joint rotations.

Per-chain customization is done with small strategy objects
(:class:`PolePlacement` and the ``*_up`` functions) referenced from the
chain table, so the solver itself has no per-chain branches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Sequence

import numpy as np

from ..core import math3d

if TYPE_CHECKING:
    from .ik_chain import InverseKinematicsChain


@dataclass(frozen=True)
class PolePlacement:
    """
    Pole target as fractional offsets from the chain.

    Attributes:
        along: Interpolation fraction from the first movable node toward the effector
        side: Lateral offset as a fraction of chain length (outward: left for
            left chains, right for right chains)
        forward: Forward offset as a fraction of chain length (negative moves back)
    """

    along: float = 0.5
    side: float = 0.0
    forward: float = 0.0

    def position(self, first, effector, chain_length: float, frame_forward, frame_right, is_right: bool) -> np.ndarray:
        """
        Compute the pole position.

        Args:
            first: World position of the first movable node
            effector: World position the chain reaches for
            chain_length: Total movable length of the chain
            frame_forward: Reference forward axis (chain root's canonical forward)
            frame_right: Reference right axis (chain root's canonical right)
            is_right: Mirror the lateral offset for right-side chains
        """
        first = math3d.vec3(first)
        pole = first + (math3d.vec3(effector) - first) * self.along

        if self.side:
            lateral = math3d.vec3(frame_right) if is_right else -math3d.vec3(frame_right)
            pole = pole + lateral * (chain_length * self.side)
        if self.forward:
            pole = pole + math3d.vec3(frame_forward) * (chain_length * self.forward)
        return pole


def bend_plane_normal(first, pole, tip, is_right: bool) -> np.ndarray:
    """
    Normal of the plane through the first node, the pole and the tip.

    Left and right chains use opposite point orderings so mirrored limbs
    get mirrored normals.
    """
    if is_right:
        return math3d.normal_from_points(first, pole, tip)
    return math3d.normal_from_points(tip, pole, first)


@dataclass
class OrientationFrame:
    """Reference vectors shared by every node of one chain evaluation."""

    root_up: np.ndarray
    tip_up: np.ndarray
    plane_normal: np.ndarray
    first_index: int
    last_index: int


NodeUpStrategy = Callable[[OrientationFrame, int], np.ndarray]


def interpolated_up(frame: OrientationFrame, index: int) -> np.ndarray:
    """Blend from the root's up to the tip's up along the chain (distributes twist)."""
    span = max(1, frame.last_index - frame.first_index)
    t = (index - frame.first_index) / span
    blended = frame.root_up * (1.0 - t) + frame.tip_up * t
    return math3d.normalize(blended, frame.root_up)


def plane_normal_up(frame: OrientationFrame, index: int) -> np.ndarray:
    """Use the bend-plane normal as every node's up (limbs)."""
    return math3d.normalize(frame.plane_normal, frame.root_up)


def root_up(frame: OrientationFrame, index: int) -> np.ndarray:
    """Use the root's up for every node (long chains that should not twist)."""
    return math3d.normalize(frame.root_up, math3d.UP)


class OrientationResolver:
    """
    Derives joint rotations from solved joint positions.

    At initialization the resolver records, per rotated node, the offset
    between the node's canonical aim frame (bone direction + up) and its
    authored world rotation. Each solve rebuilds the aim frame from the new
    positions and reapplies that offset, so a child joint always lands on
    its solved position and the authored axes never matter.
    """

    def __init__(self, node_up: NodeUpStrategy):
        self.node_up = node_up
        self._offsets: List[np.ndarray] = []

    def capture_rest(self, chain: "InverseKinematicsChain", points: Sequence[np.ndarray]):
        """Record rest offsets from the chain's current (rest) pose."""
        frame = chain.orientation_frame(points)
        self._offsets = []
        for index, node in enumerate(chain.rotated_nodes):
            aim = self._aim_rotation(points, index, frame, chain.start_index)
            rest_rotation = math3d.quat(node.joint.transform.world_rotation)
            self._offsets.append(math3d.multiply(math3d.inverse(aim), rest_rotation))

    def apply(self, chain: "InverseKinematicsChain", points: Sequence[np.ndarray]):
        """
        Write rotations for the solved ``points`` (pivot first, effector last).

        Nodes are written root to tip. A tip with no extension keeps its
        world rotation.
        """
        frame = chain.orientation_frame(points)
        tip_transform = chain.tip.transform
        keep_tip_rotation = not chain.has_extension
        saved_tip_rotation = tip_transform.world_rotation if keep_tip_rotation else None

        for index, node in enumerate(chain.rotated_nodes):
            aim = self._aim_rotation(points, index, frame, chain.start_index)
            node.joint.transform.world_rotation = math3d.multiply(aim, self._offsets[index])

        if keep_tip_rotation:
            tip_transform.world_rotation = saved_tip_rotation

    def _aim_rotation(self, points, index: int, frame: OrientationFrame, start_index: int) -> np.ndarray:
        bone_direction = math3d.direction(points[index], points[index + 1], math3d.FORWARD)
        up = self.node_up(frame, start_index + index)
        return math3d.look_rotation(bone_direction, up)
