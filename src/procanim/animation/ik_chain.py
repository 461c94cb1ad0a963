"""
Inverse Kinematics Chain

An ordered run of skeleton joints, root to tip, solved each frame so the
(optionally extended) tip reaches a world-space target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Callable, List, Optional, Sequence

import numpy as np
from pyrr import Vector3

from ..config.settings import IK_DEFAULT_ITERATIONS, IK_STICK_TO_INITIAL_FACTOR, IK_TOLERANCE
from ..core import math3d
from . import ik_solver
from .pole import OrientationFrame, OrientationResolver, PolePlacement, bend_plane_normal, interpolated_up
from .skeleton_config import Joint, RigConfigurationError

logger = logging.getLogger(__name__)


class ChainTopologyError(RigConfigurationError):
    """Chain layout or tuning is invalid, or was changed after initialization."""


@dataclass(frozen=True)
class ChainSettings:
    """
    Solver parameters of one chain.

    Attributes:
        start_index: First node moved by the solver; earlier nodes are rigid anchors
        stick_to_initial: Relax toward the rest pose every frame (springy chains)
        stick_factor: Fraction of the way the target is pulled back to rest per solve
        extend_tip_by: Effector lies this fraction of the last bone beyond the tip joint
        allow_fallback: Use the analytic solver when exactly two bones move
        iterations: Iteration budget of the iterative solver
        is_right: Right-side chain (mirrors lateral offsets)
        tolerance: Iterative solver early-exit distance
    """

    start_index: int = 1
    stick_to_initial: bool = False
    stick_factor: float = IK_STICK_TO_INITIAL_FACTOR
    extend_tip_by: float = 0.0
    allow_fallback: bool = False
    iterations: int = IK_DEFAULT_ITERATIONS
    is_right: bool = False
    tolerance: float = IK_TOLERANCE

    def with_overrides(self, **overrides) -> "ChainSettings":
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ChainTopologyError(f"Unknown chain settings: {sorted(unknown)}")
        return replace(self, **overrides)


class IkNode:
    """Wraps a joint with its cached world position during a solve."""

    __slots__ = ("joint", "position")

    def __init__(self, joint: Joint):
        self.joint = joint
        self.position = math3d.vec3(joint.world_position)

    def sync(self) -> np.ndarray:
        """Refresh the cached position from the scene graph."""
        self.position = math3d.vec3(self.joint.world_position)
        return self.position

    def __repr__(self):
        return f"IkNode({self.joint.name})"


class InverseKinematicsChain:
    """
    Joint chain solved toward a world-space target.

    The chain's target is read and written through :attr:`world_position`.
    The rest position of the effector is captured once at initialization
    (relative to the chain root) and exposed as :attr:`rest_world_position`;
    the gait uses it as the ideal foot/hand placement.
    """

    def __init__(
        self,
        name: str,
        nodes: Sequence[IkNode],
        settings: ChainSettings = ChainSettings(),
        pole: Optional[PolePlacement] = None,
        root_up_axis: str = "up",
        tip_up_axis: str = "up",
        node_up=interpolated_up,
    ):
        """
        Initialize a chain (topology only; call :meth:`initialize` before solving).

        Args:
            name: Chain identifier
            nodes: Ordered nodes, root first
            settings: Solver parameters
            pole: Pole placement, None for chains without a pole
            root_up_axis: Canonical axis of the root joint that counts as up
            tip_up_axis: Canonical axis of the tip joint that counts as up
            node_up: Strategy choosing each node's up vector
        """
        self.name = name
        self.nodes: List[IkNode] = list(nodes)
        self._settings = settings
        self.pole_placement = pole
        self.root_up_axis = root_up_axis
        self.tip_up_axis = tip_up_axis
        self.resolver = OrientationResolver(node_up)

        if not 1 <= settings.start_index <= len(self.nodes) - 2:
            raise ChainTopologyError(
                f"Chain '{name}' needs at least two movable bones after start index "
                f"{settings.start_index}, has {len(self.nodes)} nodes"
            )

        self._initialized = False
        self._lengths = np.zeros(0)
        self._rest_local = np.zeros(3)
        self._tip_up_local = math3d.UP.copy()
        self._target = np.zeros(3)
        self._post_solve_actions: List[Callable[[], None]] = []
        self.last_solver: Optional[str] = None

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------
    @property
    def settings(self) -> ChainSettings:
        return self._settings

    def configure(self, **overrides):
        """Change tuning parameters. Only allowed before initialization."""
        if self._initialized:
            raise ChainTopologyError(f"Chain '{self.name}' is initialized; settings are frozen")
        self._settings = self._settings.with_overrides(**overrides)
        if not 1 <= self._settings.start_index <= len(self.nodes) - 2:
            raise ChainTopologyError(f"Chain '{self.name}': start index {self._settings.start_index} out of range")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def start_index(self) -> int:
        return self._settings.start_index

    @property
    def root(self) -> Joint:
        return self.nodes[0].joint

    @property
    def tip(self) -> Joint:
        return self.nodes[-1].joint

    @property
    def pivot(self) -> Joint:
        """First joint moved by the solver; its position stays anchored."""
        return self.nodes[self.start_index].joint

    @property
    def is_right(self) -> bool:
        return self._settings.is_right

    @property
    def has_extension(self) -> bool:
        return self._settings.extend_tip_by > 0.0

    @property
    def movable_nodes(self) -> List[IkNode]:
        return self.nodes[self.start_index:]

    @property
    def rotated_nodes(self) -> List[IkNode]:
        """Nodes whose rotation the solver writes (every movable node but the tip)."""
        return self.nodes[self.start_index:-1]

    @property
    def movable_bone_count(self) -> int:
        return len(self.nodes) - 1 - self.start_index

    @property
    def uses_analytic_solver(self) -> bool:
        return self._settings.allow_fallback and self.movable_bone_count == 2

    @property
    def bone_lengths(self) -> np.ndarray:
        """Solver bone lengths (the last one includes the tip extension)."""
        return self._lengths.copy()

    @property
    def length(self) -> float:
        """Total reach from the pivot to the effector."""
        return float(np.sum(self._lengths))

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------
    def initialize(self):
        """Capture bone lengths, the rest effector position and rotation offsets."""
        for node in self.nodes:
            node.sync()

        points = self._gather_points()
        self._lengths = ik_solver.bone_lengths(points)
        if np.any(self._lengths < 1e-9):
            raise ChainTopologyError(f"Chain '{self.name}' has a zero-length bone")

        effector = points[-1]
        self._rest_local = self.root.transform.world_to_local_point(effector)
        tip_up = self.tip.axis(self.tip_up_axis)
        self._tip_up_local = self.root.transform.world_to_local_vector(tip_up)
        self._target = effector.copy()

        self.resolver.capture_rest(self, points)
        self._initialized = True
        logger.debug(
            "Initialized chain '%s': %d nodes, %d movable bones, length %.4f, solver=%s",
            self.name, len(self.nodes), self.movable_bone_count, self.length,
            "analytic" if self.uses_analytic_solver else "iterative",
        )

    def _gather_points(self) -> np.ndarray:
        """Movable node positions, the last replaced by the (extended) effector."""
        points = np.array([node.position for node in self.movable_nodes], dtype=np.float64)
        extend = self._settings.extend_tip_by
        if extend > 0.0:
            points[-1] = points[-2] + (points[-1] - points[-2]) * (1.0 + extend)
        return points

    # ------------------------------------------------------------------
    # Target and rest position
    # ------------------------------------------------------------------
    @property
    def world_position(self) -> Vector3:
        """Current IK target in world space."""
        return Vector3(self._target.copy())

    @world_position.setter
    def world_position(self, value):
        self._target = math3d.vec3(value)

    @property
    def local_position(self) -> Vector3:
        """Current IK target relative to the chain root."""
        return Vector3(self.root.transform.world_to_local_point(self._target))

    @property
    def rest_local_position(self) -> Vector3:
        return Vector3(self._rest_local.copy())

    @property
    def rest_world_position(self) -> Vector3:
        """Rest effector position following the chain root's current transform."""
        return Vector3(self.root.transform.local_to_world_point(self._rest_local))

    @property
    def effector_position(self) -> Vector3:
        """Where the (extended) tip actually is after the last solve."""
        for node in self.movable_nodes[-2:]:
            node.sync()
        return Vector3(self._gather_points()[-1])

    # ------------------------------------------------------------------
    # Pole / orientation helpers
    # ------------------------------------------------------------------
    def pole_position(self, first=None, effector=None) -> np.ndarray:
        """World-space pole target for the current target (or the given points)."""
        first = self.pivot.world_position if first is None else first
        effector = self._target if effector is None else effector
        placement = self.pole_placement or PolePlacement()
        return placement.position(
            first,
            effector,
            self.length,
            self.root.forward,
            self.root.right,
            self.is_right,
        )

    def orientation_frame(self, points: Sequence[np.ndarray]) -> OrientationFrame:
        """Reference vectors for resolving rotations of ``points``."""
        first = points[0]
        effector = points[-1]
        pole = self.pole_position(first, effector)
        root_up = self.root.axis(self.root_up_axis)
        return OrientationFrame(
            root_up=root_up,
            tip_up=math3d.normalize(self.root.transform.local_to_world_vector(self._tip_up_local), root_up),
            plane_normal=bend_plane_normal(first, pole, effector, self.is_right),
            first_index=self.start_index,
            last_index=len(self.nodes) - 1,
        )

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------
    def add_post_solve_action(self, action: Callable[[], None]):
        """Run ``action`` once, right after this chain's next solve."""
        self._post_solve_actions.append(action)

    def solve(self) -> np.ndarray:
        """
        Solve toward the current target and write joint rotations.

        Returns:
            Solved solver points (pivot first, effector last)
        """
        if not self._initialized:
            raise ChainTopologyError(f"Chain '{self.name}' solved before initialization")

        settings = self._settings
        if settings.stick_to_initial:
            self._target = math3d.move_towards(self._target, self.rest_world_position, settings.stick_factor)

        for node in self.nodes:
            node.sync()
        points = self._gather_points()

        if self.uses_analytic_solver:
            points = self._solve_analytic(points)
            self.last_solver = "analytic"
        else:
            bend_hint = self.pole_position(points[0], self._target) - points[0]
            points = ik_solver.solve_fabrik(
                points,
                self._target,
                iterations=settings.iterations,
                tolerance=settings.tolerance,
                lengths=self._lengths,
                bend_hint=bend_hint,
            )
            self.last_solver = "iterative"

        self.resolver.apply(self, points)
        for node in self.nodes:
            node.sync()

        actions, self._post_solve_actions = self._post_solve_actions, []
        for action in actions:
            action()
        return points

    def _solve_analytic(self, points: np.ndarray) -> np.ndarray:
        pivot = points[0]
        pole = self.pole_position(pivot, self._target)
        middle, end = ik_solver.solve_two_bone(
            pivot,
            self._target,
            self._lengths[0],
            self._lengths[1],
            pole - pivot,
        )
        return np.array([pivot, middle, end])

    def pose(self) -> List[Vector3]:
        """World positions of every joint in the chain, root first."""
        return [Vector3(node.sync()) for node in self.nodes]

    def __repr__(self):
        return f"InverseKinematicsChain(name='{self.name}', nodes={len(self.nodes)}, start={self.start_index})"
