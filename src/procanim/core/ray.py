"""
Ray

Ray casting against spheres and planes, used to turn a touch point
into a 3D look-at target.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from . import math3d


class Ray:
    """Half-line with an origin and a unit direction."""

    def __init__(self, origin=None, direction=None):
        self.origin = math3d.vec3(origin if origin is not None else (0.0, 0.0, 0.0))
        self.direction = math3d.normalize(direction if direction is not None else math3d.FORWARD, math3d.FORWARD)

    def look_at(self, point):
        """Point the ray from its origin through ``point``."""
        self.direction = math3d.direction(self.origin, point, self.direction)

    def point_at(self, t: float) -> np.ndarray:
        return self.origin + self.direction * t

    def intersect_sphere(self, center, radius: float) -> Optional[np.ndarray]:
        """
        Test ray intersection with a sphere using the geometric method.

        Args:
            center: Sphere center position
            radius: Sphere radius

        Returns:
            Nearest intersection point in front of the origin, or None if no hit
        """
        # Vector from ray origin to sphere center
        oc = math3d.vec3(center) - self.origin

        # Project oc onto ray direction
        t = float(np.dot(oc, self.direction))

        # Distance from the closest point on the ray to the sphere center
        closest_point = self.point_at(t)
        distance_to_center = math3d.distance(closest_point, center)
        if distance_to_center > radius:
            return None

        half_chord = math.sqrt(max(0.0, radius * radius - distance_to_center * distance_to_center))
        near = t - half_chord
        far = t + half_chord

        if near >= 0.0:
            return self.point_at(near)
        if far >= 0.0:
            # Origin inside the sphere
            return self.point_at(far)
        return None

    def intersect_plane(self, normal, point) -> Optional[np.ndarray]:
        """
        Intersect with the plane through ``point`` with ``normal``.

        Returns:
            Intersection point, or None if the ray is parallel to or points away from the plane
        """
        n = math3d.normalize(normal)
        denominator = float(np.dot(n, self.direction))
        if abs(denominator) < 1e-9:
            return None

        t = float(np.dot(math3d.vec3(point) - self.origin, n)) / denominator
        if t < 0.0:
            return None
        return self.point_at(t)

    def __repr__(self):
        return f"Ray(origin={tuple(self.origin)}, direction={tuple(self.direction)})"
