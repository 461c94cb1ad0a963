"""Core math and scene-graph primitives"""
from .transform import Transform
from .ray import Ray

__all__ = [
    "Transform",
    "Ray",
]
