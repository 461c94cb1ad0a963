"""
Orientation Controller

Turns the body toward the tracked target, curves the spine toward it and
the tail away from it, and keeps the head gazing at it.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from ..animation.ik_chain import InverseKinematicsChain
from ..animation.skeleton_config import Joint
from ..animation.tasks import EndlessTask, FrameScheduler
from ..config.settings import (
    ALIGNMENT_DOT_THRESHOLD,
    HEAD_GAZE_BLEND,
    SPINE_BEND_FACTOR,
    TAIL_BEND_FACTOR,
    TAIL_LENGTH_BASE,
    TAIL_LENGTH_DOT_SCALE,
    TURN_SPEED_PER_SEC,
)
from ..core import math3d


def needs_turn(dot: float) -> bool:
    """True unless the body already faces the target (within the alignment threshold)."""
    return dot < ALIGNMENT_DOT_THRESHOLD


class OrientationController:
    """
    Per-frame body, spine, tail and head orientation.

    Usage:
        controller = OrientationController(model, spine, tail, neck, lambda: tracker.position)
        controller.start(scheduler)
    """

    def __init__(
        self,
        body: Joint,
        spine: InverseKinematicsChain,
        tail: InverseKinematicsChain,
        head_parent: Joint,
        target_provider: Callable[[], np.ndarray],
    ):
        """
        Initialize the controller. Chains must already be initialized.

        Args:
            body: Character root joint that is turned toward the target
            spine: Spine chain, bent toward the target
            tail: Tail chain, counter-curved away from the target
            head_parent: Joint that carries the head (rotated for gaze)
            target_provider: Returns the current target world position
        """
        self.body = body
        self.spine = spine
        self.tail = tail
        self.head_parent = head_parent
        self.target_provider = target_provider

        self.spine_length = math3d.distance(spine.rest_world_position, spine.root.world_position)
        self.tail_length = math3d.distance(tail.rest_world_position, tail.root.world_position)
        self.last_dot = 1.0
        self._task: Optional[EndlessTask] = None
        self._scheduler: Optional[FrameScheduler] = None

    def start(self, scheduler: FrameScheduler):
        """Run :meth:`update` every frame with the scheduler's smoothed delta time."""
        self._scheduler = scheduler
        self._task = scheduler.play_endless(
            lambda task: self.update(scheduler.smooth_delta_time), name="orientation"
        )

    def stop(self):
        if self._task is not None:
            self._task.finish()

    def direction_to_target(self, target=None) -> np.ndarray:
        """Horizontal unit direction from the body to the target."""
        target = self.target_provider() if target is None else target
        offset = math3d.flatten(math3d.vec3(target) - math3d.vec3(self.body.world_position))
        return math3d.normalize(offset, self.body.forward)

    def update(self, delta_time: float) -> bool:
        """
        Apply one frame of turning and gaze.

        Args:
            delta_time: Seconds since the previous frame

        Returns:
            True if the body was turned this frame
        """
        target = math3d.vec3(self.target_provider())
        direction = self.direction_to_target(target)
        dot = float(np.dot(self.body.forward, direction))
        self.last_dot = dot

        turned = needs_turn(dot)
        if turned:
            self._turn_body(direction, delta_time)
            self._bend_spine(direction)
            self._bend_tail(direction, dot)

        self._gaze(target)
        return turned

    def _turn_body(self, direction: np.ndarray, delta_time: float):
        facing = math3d.look_rotation(direction, math3d.UP)
        fraction = TURN_SPEED_PER_SEC * delta_time
        self.body.canonical_rotation = math3d.slerp(self.body.canonical_rotation, facing, fraction)

    def _bend_spine(self, direction: np.ndarray):
        root_position = math3d.vec3(self.spine.root.world_position)
        rest_direction = math3d.direction(root_position, self.spine.rest_world_position, self.body.forward)
        spine_direction = math3d.rotate_towards(rest_direction, direction, SPINE_BEND_FACTOR)
        self.spine.world_position = root_position + spine_direction * self.spine_length

    def _bend_tail(self, direction: np.ndarray, dot: float):
        root_position = math3d.vec3(self.tail.root.world_position)
        # Mirror the opposite of the target direction across the sagittal plane
        mirrored = math3d.reflect_over_plane(-direction, self.body.right)
        tail_direction = math3d.rotate_towards(-self.body.forward, mirrored, TAIL_BEND_FACTOR)
        # A straight tail reaches full length; turning shortens it so it curves
        reach = self.tail_length * (dot * TAIL_LENGTH_DOT_SCALE + TAIL_LENGTH_BASE)
        self.tail.world_position = root_position + tail_direction * reach

    def _gaze(self, target: np.ndarray):
        head_position = math3d.vec3(self.head_parent.world_position)
        look = math3d.look_rotation(math3d.direction(head_position, target, self.body.forward), math3d.UP)
        self.head_parent.canonical_rotation = math3d.slerp(self.head_parent.canonical_rotation, look, HEAD_GAZE_BLEND)
