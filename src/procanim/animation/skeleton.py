"""
Skeleton

Raw authored skeleton: a hierarchy of transforms addressed by their
authored joint names.
"""

from typing import Dict, List, Optional, Tuple

import numpy as np

from ..core.transform import Transform


class Skeleton:
    """
    Hierarchical skeleton structure.

    Manages the joint hierarchy and provides utilities for:
    - Finding joints by authored name
    - Capturing and restoring the bind pose
    """

    def __init__(self, name: str = "Skeleton"):
        """
        Initialize skeleton.

        Args:
            name: Skeleton name for debugging
        """
        self.name = name
        self.joints: List[Transform] = []
        self.root_joints: List[Transform] = []
        self.joint_by_name: Dict[str, Transform] = {}
        self._bind_pose: Dict[str, Tuple[np.ndarray, np.ndarray]] = {}

    def add_joint(self, joint: Transform):
        """
        Add a joint to the skeleton.

        Args:
            joint: Joint to add
        """
        if joint.name in self.joint_by_name:
            raise ValueError(f"Duplicate joint name '{joint.name}' in skeleton '{self.name}'")

        self.joints.append(joint)
        self.joint_by_name[joint.name] = joint

        # If joint has no parent, it's a root joint
        if joint.parent is None:
            self.root_joints.append(joint)

    def get_joint(self, name: str) -> Optional[Transform]:
        """
        Find a joint by name.

        Args:
            name: Authored joint name

        Returns:
            Joint if found, None otherwise
        """
        return self.joint_by_name.get(name)

    def capture_bind_pose(self):
        """Remember the current local transforms as the bind pose."""
        self._bind_pose = {
            joint.name: (np.array(joint.local_position), np.array(joint.local_rotation))
            for joint in self.joints
        }

    def reset_pose(self):
        """Reset all joints to the captured bind pose."""
        for joint in self.joints:
            pose = self._bind_pose.get(joint.name)
            if pose is None:
                continue
            joint.local_position, joint.local_rotation = pose

    def __len__(self):
        return len(self.joints)

    def __repr__(self):
        return f"Skeleton(name='{self.name}', joints={len(self.joints)}, roots={len(self.root_joints)})"
