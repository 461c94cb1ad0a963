"""
IK Chain Table

Every chain type the lizard rig uses, described as data: which joint
roles it spans, its solver parameters and its pole / node-up strategies.
:func:`create_ik_chain` looks a type up once and builds the chain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from ..config.settings import IK_DEFAULT_ITERATIONS
from .ik_chain import ChainSettings, IkNode, InverseKinematicsChain
from .pole import NodeUpStrategy, PolePlacement, interpolated_up, plane_normal_up, root_up
from .skeleton_config import TAIL_ROLES, Joint, JointRole, MissingJointError, RigConfigurationError

logger = logging.getLogger(__name__)


class UnknownChainTypeError(RigConfigurationError):
    """The chain factory was asked for a type that has no table entry."""


class ChainType(Enum):
    SPINE = "IK_SPINE"
    ARM_L = "IK_ARM_L"
    ARM_R = "IK_ARM_R"
    LEG_L = "IK_LEG_L"
    LEG_R = "IK_LEG_R"
    TAIL = "IK_TAIL"


@dataclass(frozen=True)
class ChainSpec:
    """
    Static description of one chain type.

    Attributes:
        roles: Joint roles from root to tip
        start_index: First role moved by the solver
        stick_to_initial: Springy chain relaxing toward rest each frame
        extend_tip_by: Effector extension as a fraction of the last bone
        allow_fallback: Analytic solve permitted for two-bone chains
        iterations: Iterative solver budget
        is_right: Right-side chain
        root_up_axis: Canonical axis of the root joint used as up
        tip_up_axis: Canonical axis of the tip joint used as up
        pole: Pole placement strategy
        node_up: Per-node up strategy
        optional_roles: Roles dropped from the chain when the skeleton lacks them
    """

    roles: Tuple[JointRole, ...]
    start_index: int = 1
    stick_to_initial: bool = False
    extend_tip_by: float = 0.0
    allow_fallback: bool = False
    iterations: int = IK_DEFAULT_ITERATIONS
    is_right: bool = False
    root_up_axis: str = "up"
    tip_up_axis: str = "up"
    pole: PolePlacement = PolePlacement()
    node_up: NodeUpStrategy = interpolated_up
    optional_roles: Tuple[JointRole, ...] = ()

    def settings(self) -> ChainSettings:
        return ChainSettings(
            start_index=self.start_index,
            stick_to_initial=self.stick_to_initial,
            extend_tip_by=self.extend_tip_by,
            allow_fallback=self.allow_fallback,
            iterations=self.iterations,
            is_right=self.is_right,
        )


# Arms: 40% root to tip, then out to the side and back
POLE_ARM = PolePlacement(along=0.4, side=0.6, forward=-0.6)
# Legs: 20% root to tip, then out to the side and forward
POLE_LEG = PolePlacement(along=0.2, side=0.8, forward=0.5)
POLE_MIDDLE = PolePlacement(along=0.5)


def _arm(is_right: bool) -> ChainSpec:
    r = JointRole
    return ChainSpec(
        roles=(
            r.CHEST,
            r.SCAPULA_R if is_right else r.SCAPULA_L,
            r.SHOULDER_R if is_right else r.SHOULDER_L,
            r.UPPER_ARM_R if is_right else r.UPPER_ARM_L,
            r.LOWER_ARM_R if is_right else r.LOWER_ARM_L,
        ),
        start_index=2,
        extend_tip_by=0.6,
        allow_fallback=True,
        is_right=is_right,
        root_up_axis="forward",
        tip_up_axis="forward",
        pole=POLE_ARM,
        node_up=plane_normal_up,
    )


def _leg(is_right: bool) -> ChainSpec:
    r = JointRole
    return ChainSpec(
        roles=(
            r.HIP,
            r.HIP_R if is_right else r.HIP_L,
            r.UPPER_LEG_R if is_right else r.UPPER_LEG_L,
            r.LOWER_LEG_R if is_right else r.LOWER_LEG_L,
        ),
        start_index=1,
        extend_tip_by=0.6,
        allow_fallback=True,
        is_right=is_right,
        root_up_axis="forward",
        tip_up_axis="forward",
        pole=POLE_LEG,
        node_up=plane_normal_up,
    )


CHAIN_TABLE: Dict[ChainType, ChainSpec] = {
    ChainType.SPINE: ChainSpec(
        roles=(JointRole.HIP, JointRole.SPINE, JointRole.CHEST, JointRole.NECK),
        stick_to_initial=True,
        pole=POLE_MIDDLE,
        node_up=interpolated_up,
        optional_roles=(JointRole.CHEST,),
    ),
    ChainType.ARM_L: _arm(False),
    ChainType.ARM_R: _arm(True),
    ChainType.LEG_L: _leg(False),
    ChainType.LEG_R: _leg(True),
    ChainType.TAIL: ChainSpec(
        roles=(JointRole.HIP,) + TAIL_ROLES,
        stick_to_initial=True,
        pole=POLE_MIDDLE,
        node_up=root_up,
        optional_roles=TAIL_ROLES[1:],
    ),
}


def create_ik_chain(
    chain_type,
    joints: Mapping[JointRole, Joint],
    settings_overrides: Optional[Mapping[str, object]] = None,
) -> InverseKinematicsChain:
    """
    Build an IK chain from the table.

    Args:
        chain_type: ``ChainType`` member or its value string (e.g. ``"IK_SPINE"``)
        joints: Resolved role to joint mapping
        settings_overrides: Pre-initialization tuning (``iterations``,
            ``stick_to_initial``, ``extend_tip_by`` ...)

    Returns:
        Uninitialized chain

    Raises:
        UnknownChainTypeError: If the type has no table entry
        MissingJointError: If a non-optional role of the chain is absent
    """
    try:
        chain_type = ChainType(chain_type)
    except ValueError:
        logger.error("Unknown IK chain type '%s'", chain_type)
        raise UnknownChainTypeError(f"Unknown IK chain type '{chain_type}'") from None

    spec = CHAIN_TABLE.get(chain_type)
    if spec is None:
        raise UnknownChainTypeError(f"No chain table entry for {chain_type.value}")

    nodes = []
    missing = {}
    for role in spec.roles:
        joint = joints.get(role)
        if joint is None:
            if role not in spec.optional_roles:
                missing[role] = role.value
            continue
        nodes.append(IkNode(joint))
    if missing:
        error = MissingJointError(missing, chain_name=chain_type.value)
        logger.error("%s", error)
        raise error

    settings = spec.settings()
    if settings_overrides:
        settings = settings.with_overrides(**settings_overrides)

    chain = InverseKinematicsChain(
        chain_type.value,
        nodes,
        settings=settings,
        pole=spec.pole,
        root_up_axis=spec.root_up_axis,
        tip_up_axis=spec.tip_up_axis,
        node_up=spec.node_up,
    )
    logger.debug("Created %r", chain)
    return chain
