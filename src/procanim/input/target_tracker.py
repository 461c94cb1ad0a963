"""
Target Tracker

Turns the latest camera position and touch point into the world-space
point of interest the character follows. While a drag is active the
target eases toward the touch point; otherwise it bobs up and down where
it was left. The target always faces the camera.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

import numpy as np
from pyrr import Quaternion, Vector3

from ..animation.tasks import CycleTask, EndlessTask, FrameScheduler
from ..config.settings import (
    TARGET_BOB_AMPLITUDE,
    TARGET_BOB_PERIOD,
    TARGET_CAMERA_DISTANCE_DIVISOR,
    TARGET_DRAG_FOLLOW,
    TARGET_RADIUS_AROUND_CHARACTER,
)
from ..core import math3d
from ..core.ray import Ray

logger = logging.getLogger(__name__)

DEFAULT_CAMERA_POSITION = (0.0, 0.4, 0.8)
DEFAULT_TARGET_OFFSET = (0.0, 0.1, 0.3)


class TargetTracker:
    """
    Tracks the point of interest from camera and touch input.

    Input arrives asynchronously and only the latest value of each is
    kept. Drag start/end is announced to callbacks registered with
    :meth:`register_drag_callback`.
    """

    def __init__(self, scheduler: FrameScheduler, center=None, position=None):
        """
        Initialize the tracker.

        Args:
            scheduler: Frame scheduler driving drag follow and idle bobbing
            center: Character center; acquisition geometry is built around it
            position: Initial target position (in front of the center by default)
        """
        self.scheduler = scheduler
        self.center = math3d.vec3(center if center is not None else (0.0, 0.0, 0.0))
        self._position = self.center + math3d.vec3(position if position is not None else DEFAULT_TARGET_OFFSET)
        self._rotation = math3d.quat()
        self._camera_position = math3d.vec3(DEFAULT_CAMERA_POSITION)
        self._touch_point = self._position.copy()
        self._drag_task: Optional[EndlessTask] = None
        self._bob_task: Optional[CycleTask] = None
        self._drag_callbacks: List[Callable[[bool], None]] = []
        self._face_camera()

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def set_camera_position(self, position):
        self._camera_position = math3d.vec3(position)

    def set_touch_point(self, point):
        """Latest touch point, already unprojected onto the camera's focal plane."""
        self._touch_point = math3d.vec3(point)

    def register_drag_callback(self, callback: Callable[[bool], None]):
        """Call ``callback(is_dragging)`` whenever a drag starts or ends."""
        self._drag_callbacks.append(callback)

    @property
    def camera_position(self) -> Vector3:
        return Vector3(self._camera_position.copy())

    @property
    def position(self) -> Vector3:
        return Vector3(self._position.copy())

    @position.setter
    def position(self, value):
        self._position = math3d.vec3(value)

    @property
    def rotation(self) -> Quaternion:
        return Quaternion(self._rotation.copy())

    @property
    def is_dragging(self) -> bool:
        return self._drag_task is not None and not self._drag_task.finished

    # ------------------------------------------------------------------
    # Drag / idle
    # ------------------------------------------------------------------
    def start(self):
        """Begin idle bobbing at the current position."""
        self._start_bobbing()

    def stop(self):
        for task in (self._drag_task, self._bob_task):
            if task is not None:
                task.finish()

    def place(self, point):
        """Move the target to ``point``; idle bobbing restarts around it unless dragging."""
        self._position = math3d.vec3(point)
        self._face_camera()
        if not self.is_dragging and self._bob_task is not None:
            self._start_bobbing()

    def begin_drag(self):
        if self._bob_task is not None:
            self._bob_task.finish()
        if self.is_dragging:
            return
        self._drag_task = self.scheduler.play_endless(lambda task: self._follow_touch(), name="target-drag")
        logger.debug("Target drag started")
        self._notify(True)

    def end_drag(self):
        if self._drag_task is not None:
            self._drag_task.finish()
            self._drag_task = None
        self._start_bobbing()
        logger.debug("Target drag ended")
        self._notify(False)

    def _notify(self, is_dragging: bool):
        for callback in self._drag_callbacks:
            callback(is_dragging)

    def _follow_touch(self):
        point = self.resolve_target_point(self._touch_point)
        if point is not None:
            self._position = math3d.move_towards(self._position, point, TARGET_DRAG_FOLLOW)
        self._face_camera()

    def _start_bobbing(self):
        if self._bob_task is not None:
            self._bob_task.finish()
        anchor = self._position.copy()

        def bob(phase: float, cycle_index: int, task: CycleTask):
            resolved = self.resolve_target_point(anchor)
            if resolved is not None:
                anchor[:] = resolved
            self._position = anchor + math3d.UP * (TARGET_BOB_AMPLITUDE * math3d.sin_cycle01(phase))
            self._face_camera()

        self._bob_task = self.scheduler.play_cycle(TARGET_BOB_PERIOD, bob, name="target-bob")

    def _face_camera(self):
        facing = math3d.direction(self._position, self._camera_position, math3d.FORWARD)
        self._rotation = math3d.look_rotation(facing, math3d.UP)

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------
    def acquisition_sphere(self):
        """
        Sphere the camera ray is intersected with first.

        Returns:
            (pivot, radius): the sphere is offset from the center toward the
            camera by its radius, so it touches the character center
        """
        to_camera = self._camera_position - self.center
        radius = min(TARGET_RADIUS_AROUND_CHARACTER, math3d.length(to_camera) / TARGET_CAMERA_DISTANCE_DIVISOR)
        horizontal = math3d.normalize(math3d.flatten(to_camera), math3d.FORWARD)
        return self.center + horizontal * radius, radius

    def resolve_target_point(self, reference) -> Optional[np.ndarray]:
        """
        Project a reference point onto the acquisition surface.

        A ray from the camera through ``reference`` is intersected with the
        acquisition sphere; if it misses, with the vertical plane through the
        sphere's pivot that faces the camera.

        Args:
            reference: World point the camera ray passes through

        Returns:
            Target point, or None if the ray hits neither surface
        """
        pivot, radius = self.acquisition_sphere()
        ray = Ray(self._camera_position)
        ray.look_at(reference)

        point = ray.intersect_sphere(pivot, radius)
        if point is None:
            normal = math3d.normalize(math3d.flatten(self._camera_position - self.center), math3d.FORWARD)
            point = ray.intersect_plane(normal, pivot)
        return point
