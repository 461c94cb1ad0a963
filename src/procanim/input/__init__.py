"""Target acquisition from camera and touch input"""
from .target_tracker import TargetTracker

__all__ = [
    "TargetTracker",
]
