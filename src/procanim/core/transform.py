"""
Transform

Minimal scene-graph node: hierarchical position and rotation with
world/local conversions. Joints of a skeleton and the character root are
all Transforms.
"""

from __future__ import annotations

from typing import Iterator, List, Optional

import numpy as np
from pyrr import Quaternion, Vector3

from . import math3d


class Transform:
    """
    A node in a transform hierarchy.

    Each transform has:
    - Local position/rotation (relative to parent)
    - World position/rotation (computed from the hierarchy on demand)
    - Parent-child relationships

    There is no scale; bone lengths therefore never change when a
    rotation is written.
    """

    def __init__(
        self,
        name: str,
        parent: Optional['Transform'] = None,
        position=None,
        rotation=None,
    ):
        """
        Initialize a transform.

        Args:
            name: Node name (authored joint name for skeleton joints)
            parent: Parent transform (None for root)
            position: Local position, defaults to origin
            rotation: Local rotation (x, y, z, w), defaults to identity
        """
        self.name = name
        self.parent: Optional[Transform] = None
        self.children: List[Transform] = []
        self._local_position = math3d.vec3(position if position is not None else (0.0, 0.0, 0.0))
        self._local_rotation = math3d.quat(rotation)

        if parent is not None:
            parent.add_child(self)

    def add_child(self, child: 'Transform'):
        """Attach ``child`` keeping its local transform."""
        if child.parent is not None:
            child.parent.children.remove(child)
        self.children.append(child)
        child.parent = self

    def iter_descendants(self) -> Iterator['Transform']:
        """Depth-first walk of everything below this node."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    # ------------------------------------------------------------------
    # Local space
    # ------------------------------------------------------------------
    @property
    def local_position(self) -> Vector3:
        return Vector3(self._local_position.copy())

    @local_position.setter
    def local_position(self, value):
        self._local_position = math3d.vec3(value)

    @property
    def local_rotation(self) -> Quaternion:
        return Quaternion(self._local_rotation.copy())

    @local_rotation.setter
    def local_rotation(self, value):
        self._local_rotation = math3d.quat(value)

    # ------------------------------------------------------------------
    # World space
    # ------------------------------------------------------------------
    def _world_rotation(self) -> np.ndarray:
        if self.parent is None:
            return self._local_rotation.copy()
        return math3d.multiply(self.parent._world_rotation(), self._local_rotation)

    def _world_position(self) -> np.ndarray:
        if self.parent is None:
            return self._local_position.copy()
        return self.parent.local_to_world_point(self._local_position)

    @property
    def world_position(self) -> Vector3:
        return Vector3(self._world_position())

    @world_position.setter
    def world_position(self, value):
        if self.parent is None:
            self._local_position = math3d.vec3(value)
        else:
            self._local_position = self.parent.world_to_local_point(value)

    @property
    def world_rotation(self) -> Quaternion:
        return Quaternion(self._world_rotation())

    @world_rotation.setter
    def world_rotation(self, value):
        rotation = math3d.quat(value)
        if self.parent is None:
            self._local_rotation = rotation
        else:
            self._local_rotation = math3d.multiply(math3d.inverse(self.parent._world_rotation()), rotation)

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------
    def local_to_world_point(self, point) -> np.ndarray:
        """Transform a point from this node's space to world space."""
        return self._world_position() + math3d.rotate_vector(self._world_rotation(), point)

    def world_to_local_point(self, point) -> np.ndarray:
        """Transform a world-space point into this node's space."""
        offset = math3d.vec3(point) - self._world_position()
        return math3d.rotate_vector(math3d.inverse(self._world_rotation()), offset)

    def local_to_world_vector(self, v) -> np.ndarray:
        """Rotate a direction from this node's space to world space."""
        return math3d.rotate_vector(self._world_rotation(), v)

    def world_to_local_vector(self, v) -> np.ndarray:
        """Rotate a world-space direction into this node's space."""
        return math3d.rotate_vector(math3d.inverse(self._world_rotation()), v)

    def __repr__(self):
        return f"Transform(name='{self.name}', children={len(self.children)})"
