"""
Skeleton Configuration

Maps abstract joint roles onto the joints of an authored skeleton and
normalizes each joint's authoring convention to one canonical
forward/up basis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

import numpy as np
from pyrr import Quaternion, Vector3

from ..core import math3d
from ..core.transform import Transform

logger = logging.getLogger(__name__)


class RigConfigurationError(RuntimeError):
    """A character rig cannot be built. Never recoverable at runtime."""


class MissingJointError(RigConfigurationError):
    """One or more required joint roles have no authored joint."""

    def __init__(self, missing: Dict['JointRole', str], skeleton_name: str = "", chain_name: str = ""):
        self.missing = dict(missing)
        self.chain_name = chain_name
        details = ", ".join(f"{role.value} -> '{name}'" for role, name in self.missing.items())
        if chain_name:
            where = f" for chain '{chain_name}'"
        else:
            where = f" in skeleton '{skeleton_name}'" if skeleton_name else ""
        super().__init__(f"Missing required joints{where}: {details}")


class JointRole(Enum):
    """Symbolic joint identities, stable across skeletons."""

    MODEL = "MODEL"
    ROOT = "ROOT"
    HIP = "HIP"
    HIP_L = "HIP_L"
    UPPER_LEG_L = "UPPER_LEG_L"
    LOWER_LEG_L = "LOWER_LEG_L"
    FOOT_L = "FOOT_L"
    HIP_R = "HIP_R"
    UPPER_LEG_R = "UPPER_LEG_R"
    LOWER_LEG_R = "LOWER_LEG_R"
    FOOT_R = "FOOT_R"
    SPINE = "SPINE"
    CHEST = "CHEST"
    NECK = "NECK"
    HEAD = "HEAD"
    EYE_L = "EYE_L"
    EYE_R = "EYE_R"
    SCAPULA_L = "SCAPULA_L"
    SHOULDER_L = "SHOULDER_L"
    UPPER_ARM_L = "UPPER_ARM_L"
    LOWER_ARM_L = "LOWER_ARM_L"
    HAND_L = "HAND_L"
    SCAPULA_R = "SCAPULA_R"
    SHOULDER_R = "SHOULDER_R"
    UPPER_ARM_R = "UPPER_ARM_R"
    LOWER_ARM_R = "LOWER_ARM_R"
    HAND_R = "HAND_R"
    TAIL_01 = "TAIL_01"
    TAIL_02 = "TAIL_02"
    TAIL_03 = "TAIL_03"
    TAIL_04 = "TAIL_04"
    TAIL_05 = "TAIL_05"
    TAIL_06 = "TAIL_06"
    TAIL_07 = "TAIL_07"
    TAIL_08 = "TAIL_08"
    TAIL_09 = "TAIL_09"
    TAIL_10 = "TAIL_10"
    TAIL_11 = "TAIL_11"
    TAIL_12 = "TAIL_12"
    TAIL_13 = "TAIL_13"
    TAIL_14 = "TAIL_14"
    TAIL_15 = "TAIL_15"
    TAIL_16 = "TAIL_16"


TAIL_ROLES = tuple(JointRole[f"TAIL_{i:02d}"] for i in range(1, 17))


class JointBasis:
    """
    Reference basis of an authored joint.

    ``treat_as_forward`` and ``treat_as_up`` name the joint's local axes that
    play the part of canonical FORWARD and UP. A joint authored with its
    bone along local left and its back facing local down is described as
    ``JointBasis("left", "down")``.
    """

    __slots__ = ("forward", "up", "rotation", "_inverse")

    def __init__(self, treat_as_forward="forward", treat_as_up="up"):
        self.forward = _axis_value(treat_as_forward)
        self.up = _axis_value(treat_as_up)
        if abs(float(np.dot(self.forward, self.up))) > 1e-6:
            raise ValueError("Joint basis axes must be orthogonal")
        # Maps canonical axes onto the joint's local axes
        self.rotation = math3d.look_rotation(self.forward, self.up)
        self._inverse = math3d.inverse(self.rotation)

    def local_axis(self, name: str) -> np.ndarray:
        """Local-space vector playing the part of canonical axis ``name``."""
        return math3d.rotate_vector(self.rotation, math3d.axis(name))

    def to_canonical(self, world_rotation) -> np.ndarray:
        return math3d.multiply(world_rotation, self.rotation)

    def from_canonical(self, canonical_rotation) -> np.ndarray:
        return math3d.multiply(canonical_rotation, self._inverse)

    def __repr__(self):
        return f"JointBasis(forward={tuple(self.forward)}, up={tuple(self.up)})"


def _axis_value(value) -> np.ndarray:
    if isinstance(value, str):
        return math3d.axis(value)
    return math3d.normalize(value)


CANONICAL_BASIS = JointBasis("forward", "up")


class Joint:
    """
    A skeleton transform bound to a role and its canonical basis.

    Immutable after creation; the transform it wraps is not owned.
    """

    __slots__ = ("_role", "_transform", "_basis")

    def __init__(self, role: JointRole, transform: Transform, basis: JointBasis = CANONICAL_BASIS):
        self._role = role
        self._transform = transform
        self._basis = basis

    role = property(lambda self: self._role)
    transform = property(lambda self: self._transform)
    basis = property(lambda self: self._basis)

    @property
    def name(self) -> str:
        return self._transform.name

    @property
    def parent(self) -> Optional[Transform]:
        return self._transform.parent

    @property
    def world_position(self) -> Vector3:
        return self._transform.world_position

    @world_position.setter
    def world_position(self, value):
        self._transform.world_position = value

    def axis(self, name: str) -> np.ndarray:
        """World-space direction of canonical axis ``name`` for this joint."""
        return math3d.normalize(self._transform.local_to_world_vector(self._basis.local_axis(name)))

    @property
    def forward(self) -> np.ndarray:
        return self.axis("forward")

    @property
    def up(self) -> np.ndarray:
        return self.axis("up")

    @property
    def right(self) -> np.ndarray:
        return self.axis("right")

    @property
    def canonical_rotation(self) -> Quaternion:
        """World rotation expressed in the canonical basis."""
        return Quaternion(self._basis.to_canonical(np.asarray(self._transform.world_rotation)))

    @canonical_rotation.setter
    def canonical_rotation(self, value):
        self._transform.world_rotation = self._basis.from_canonical(value)

    def look_at(self, forward, up=math3d.UP):
        """Orient the joint so its canonical forward faces ``forward``."""
        self.canonical_rotation = math3d.look_rotation(forward, up)

    def __repr__(self):
        return f"Joint(role={self._role.value}, name='{self.name}')"


@dataclass
class SkeletonConfig:
    """
    Static role -> authored joint mapping plus per-joint reference bases.

    Attributes:
        name: Config name (character type)
        joint_map: Role to authored joint name
        joint_bases: Role to reference basis (canonical basis when absent)
        optional_roles: Roles that may be absent from the authored skeleton
    """

    name: str
    joint_map: Dict[JointRole, str]
    joint_bases: Dict[JointRole, JointBasis] = field(default_factory=dict)
    optional_roles: FrozenSet[JointRole] = frozenset()

    @property
    def reverse_joint_map(self) -> Dict[str, JointRole]:
        return {authored: role for role, authored in self.joint_map.items()}

    @property
    def required_roles(self) -> List[JointRole]:
        return [role for role in self.joint_map if role not in self.optional_roles]

    def basis_for(self, role: JointRole) -> JointBasis:
        return self.joint_bases.get(role, CANONICAL_BASIS)

    def resolve(self, skeleton, model: Optional[Transform] = None) -> Dict[JointRole, Joint]:
        """
        Bind every mapped role to a joint of ``skeleton``.

        Args:
            skeleton: Authored skeleton (name -> transform lookup)
            model: Character root transform, bound to ``JointRole.MODEL``

        Returns:
            Role to Joint mapping

        Raises:
            MissingJointError: If any required role has no authored joint
        """
        joints: Dict[JointRole, Joint] = {}
        missing: Dict[JointRole, str] = {}

        for role, authored_name in self.joint_map.items():
            if role is JointRole.MODEL:
                transform = model
            else:
                transform = skeleton.get_joint(authored_name)

            if transform is None:
                if role not in self.optional_roles:
                    missing[role] = authored_name
                continue
            joints[role] = Joint(role, transform, self.basis_for(role))

        if missing:
            error = MissingJointError(missing, getattr(skeleton, "name", ""))
            logger.error("%s", error)
            raise error

        logger.debug("Resolved %d joints for config '%s'", len(joints), self.name)
        return joints


def _bases(entries: Iterable) -> Dict[JointRole, JointBasis]:
    return {role: JointBasis(forward, up) for role, forward, up in entries}


_r = JointRole

LIZZY_CONFIG = SkeletonConfig(
    name="lizzy",
    joint_map={
        _r.MODEL: "lizzy",
        _r.ROOT: "skeleton",
        _r.HIP: "Root_M",
        _r.HIP_L: "Hip_L",
        _r.UPPER_LEG_L: "Knee_L",
        _r.LOWER_LEG_L: "Ankle_L",
        _r.HIP_R: "Hip_R",
        _r.UPPER_LEG_R: "Knee_R",
        _r.LOWER_LEG_R: "Ankle_R",
        _r.SPINE: "Spine1_M",
        _r.CHEST: "Chest_M",
        _r.NECK: "Neck_M",
        _r.HEAD: "Head_M",
        _r.EYE_L: "Eye_L",
        _r.EYE_R: "Eye_R",
        _r.SCAPULA_L: "Scapula_L",
        _r.SHOULDER_L: "Shoulder_L",
        _r.UPPER_ARM_L: "Elbow_L",
        _r.LOWER_ARM_L: "Wrist_L",
        _r.SCAPULA_R: "Scapula_R",
        _r.SHOULDER_R: "Shoulder_R",
        _r.UPPER_ARM_R: "Elbow_R",
        _r.LOWER_ARM_R: "Wrist_R",
        **{role: f"Tail{i}_M" for i, role in enumerate(TAIL_ROLES)},
    },
    joint_bases=_bases([
        (_r.MODEL, "forward", "up"),
        (_r.ROOT, "forward", "up"),
        # What is left in the hip we treat as forward, what is down as up
        (_r.HIP, "left", "down"),
        (_r.HIP_L, "right", "forward"),
        (_r.UPPER_LEG_L, "right", "forward"),
        (_r.LOWER_LEG_L, "down", "left"),
        (_r.HIP_R, "left", "back"),
        (_r.UPPER_LEG_R, "left", "back"),
        (_r.LOWER_LEG_R, "up", "right"),
        (_r.SPINE, "left", "down"),
        (_r.CHEST, "left", "down"),
        (_r.NECK, "left", "down"),
        (_r.HEAD, "left", "down"),
        (_r.EYE_L, "left", "down"),
        (_r.EYE_R, "left", "down"),
        (_r.SCAPULA_L, "right", "back"),
        (_r.SHOULDER_L, "right", "back"),
        (_r.UPPER_ARM_L, "right", "back"),
        (_r.LOWER_ARM_L, "down", "left"),
        (_r.SCAPULA_R, "left", "forward"),
        (_r.SHOULDER_R, "left", "forward"),
        (_r.UPPER_ARM_R, "left", "forward"),
        (_r.LOWER_ARM_R, "up", "right"),
        *[(role, "left", "down") for role in TAIL_ROLES],
    ]),
    # Tail length varies between rigs; only the first segment is mandatory
    optional_roles=frozenset(TAIL_ROLES[1:]),
)

del _r
