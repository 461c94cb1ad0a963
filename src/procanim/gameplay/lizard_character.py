"""Procedurally animated lizard character."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pyrr import Quaternion, Vector3

from ..animation.chain_table import ChainType, UnknownChainTypeError, create_ik_chain
from ..animation.gait import GaitController, GaitState
from ..animation.ik_chain import ChainSettings, ChainTopologyError, InverseKinematicsChain
from ..animation.skeleton import Skeleton
from ..animation.skeleton_config import LIZZY_CONFIG, Joint, JointRole, SkeletonConfig
from ..animation.tasks import FrameScheduler
from ..config.settings import DEFAULT_CHARACTER_PATH
from ..core import math3d
from ..core.transform import Transform
from ..input.target_tracker import TargetTracker
from ..loaders.skeleton_loader import load_skeleton
from .orientation_controller import OrientationController

logger = logging.getLogger(__name__)

# Spine first: every limb's rest position depends on the solved spine
SOLVE_ORDER = (
    ChainType.SPINE,
    ChainType.TAIL,
    ChainType.ARM_L,
    ChainType.ARM_R,
    ChainType.LEG_L,
    ChainType.LEG_R,
)


class LizardCharacter:
    """
    A quadruped that walks toward and looks at a tracked target.

    The character owns its joint mapping, all IK chains and all gait
    state. Construction only binds the skeleton; :meth:`initialize_async`
    builds the rig, and :meth:`update` runs one frame.

    Usage:
        lizard = LizardCharacter(load_skeleton("assets/characters/lizzy.json"))
        lizard.configure_chain(ChainType.TAIL, iterations=8)
        await lizard.initialize_async()
        lizard.update(1 / 60)
    """

    def __init__(self, skeleton: Skeleton, config: SkeletonConfig = LIZZY_CONFIG, name: str = "Lizzy"):
        """
        Initialize the character.

        Args:
            skeleton: Authored skeleton
            config: Role mapping and joint bases for the skeleton
            name: Character name
        """
        self.name = name
        self.skeleton = skeleton
        self.config = config
        self.scheduler = FrameScheduler()

        # Character root; the authored skeleton hangs below it
        self.model = Transform(config.joint_map.get(JointRole.MODEL, name))
        for root in skeleton.root_joints:
            self.model.add_child(root)
        self._fixed_target = math3d.FORWARD * 0.3

        self.joints: Dict[JointRole, Joint] = {}
        self.chains: Dict[ChainType, InverseKinematicsChain] = {}
        self.gait: Optional[GaitController] = None
        self.orientation: Optional[OrientationController] = None
        self.target_tracker: Optional[TargetTracker] = None

        self._chain_overrides: Dict[ChainType, dict] = {}
        self._initialized = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def configure_chain(self, chain_type, **overrides):
        """
        Tune a chain before initialization.

        Args:
            chain_type: ``ChainType`` or its value string
            **overrides: ``ChainSettings`` fields (``iterations``, ``stick_to_initial``,
                ``extend_tip_by``, ...)

        Raises:
            ChainTopologyError: If called after initialization or with unknown settings
            UnknownChainTypeError: If the chain type does not exist
        """
        if self._initialized:
            raise ChainTopologyError(f"Character '{self.name}' is initialized; chain tuning is frozen")
        try:
            chain_type = ChainType(chain_type)
        except ValueError:
            raise UnknownChainTypeError(f"Unknown IK chain type '{chain_type}'") from None

        merged = {**self._chain_overrides.get(chain_type, {}), **overrides}
        # Validates the keys
        ChainSettings().with_overrides(**merged)
        self._chain_overrides[chain_type] = merged

    async def initialize_async(self, track_target: bool = True):
        """
        Build the rig and start the per-frame behaviors.

        Args:
            track_target: Create a :class:`TargetTracker` as the target source

        Raises:
            RigConfigurationError: If the skeleton cannot be rigged
        """
        if self._initialized:
            return

        self.joints = self.config.resolve(self.skeleton, self.model)
        await asyncio.sleep(0)

        chains: Dict[ChainType, InverseKinematicsChain] = {}
        for chain_type in SOLVE_ORDER:
            chain = create_ik_chain(chain_type, self.joints, self._chain_overrides.get(chain_type))
            chain.initialize()
            chains[chain_type] = chain
        self.chains = chains

        if track_target:
            self.target_tracker = TargetTracker(self.scheduler, center=self.model.world_position)
            self.target_tracker.start()
        self._fixed_target = math3d.vec3(self.model.world_position) + self.forward * 0.3

        self.orientation = OrientationController(
            self.joints[JointRole.MODEL],
            self.spine,
            self.tail,
            self.joints[JointRole.NECK],
            self._current_target,
        )
        self.orientation.start(self.scheduler)

        self.gait = GaitController(self.scheduler, self.spine)
        self.gait.add_pair(chains[ChainType.ARM_L], chains[ChainType.ARM_R])
        self.gait.add_pair(chains[ChainType.LEG_L], chains[ChainType.LEG_R])
        self.gait.start()

        self._initialized = True
        logger.info(
            "Character '%s' initialized: %d joints, %d chains (tail %d nodes)",
            self.name, len(self.joints), len(self.chains), len(self.tail.nodes),
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _current_target(self):
        if self.target_tracker is not None:
            return self.target_tracker.position
        return self._fixed_target

    @property
    def target(self) -> Vector3:
        """Point of interest the character turns toward and looks at."""
        return Vector3(self._current_target())

    @target.setter
    def target(self, value):
        if self.target_tracker is not None:
            self.target_tracker.place(value)
        else:
            self._fixed_target = math3d.vec3(value)

    # ------------------------------------------------------------------
    # Frame
    # ------------------------------------------------------------------
    def update(self, delta_time: float):
        """
        Run one frame: behaviors, then every chain solve in order.

        Args:
            delta_time: Seconds since the previous frame
        """
        if not self._initialized:
            raise RuntimeError(f"Character '{self.name}' updated before initialization")

        self.scheduler.tick(delta_time)
        for chain_type in SOLVE_ORDER:
            self.chains[chain_type].solve()

    def shutdown(self):
        self.scheduler.cancel_all()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_chain(self, chain_type) -> InverseKinematicsChain:
        try:
            return self.chains[ChainType(chain_type)]
        except ValueError:
            raise UnknownChainTypeError(f"Unknown IK chain type '{chain_type}'") from None

    def get_joint(self, role: JointRole) -> Joint:
        return self.joints[role]

    def chain_pose(self, chain_type) -> List[Vector3]:
        """World positions of a chain's joints, root first."""
        return self.get_chain(chain_type).pose()

    def joint_pose(self, role: JointRole):
        """(world position, world rotation) of a joint."""
        transform = self.get_joint(role).transform
        return transform.world_position, transform.world_rotation

    @property
    def spine(self) -> InverseKinematicsChain:
        return self.chains[ChainType.SPINE]

    @property
    def tail(self) -> InverseKinematicsChain:
        return self.chains[ChainType.TAIL]

    @property
    def position(self) -> Vector3:
        return self.model.world_position

    @position.setter
    def position(self, value):
        self.model.world_position = value

    @property
    def rotation(self) -> Quaternion:
        return self.model.world_rotation

    @rotation.setter
    def rotation(self, value):
        self.model.world_rotation = value

    @property
    def forward(self):
        return math3d.rotate_vector(self.model.world_rotation, math3d.FORWARD)

    @property
    def right(self):
        return math3d.rotate_vector(self.model.world_rotation, math3d.RIGHT)

    @property
    def back(self):
        return -self.forward

    def limb_states(self) -> Dict[str, GaitState]:
        return self.gait.limb_states() if self.gait is not None else {}

    def __repr__(self):
        return f"LizardCharacter(name='{self.name}', initialized={self._initialized})"


async def load_character_async(
    path: Path | str = DEFAULT_CHARACTER_PATH,
    config: SkeletonConfig = LIZZY_CONFIG,
    name: str = "Lizzy",
    track_target: bool = True,
) -> LizardCharacter:
    """
    Load a character asset and initialize it.

    Raises:
        CharacterAssetError: If the asset is missing or malformed
        MissingJointError: If the skeleton lacks a required joint
    """
    skeleton = await asyncio.to_thread(load_skeleton, path)
    character = LizardCharacter(skeleton, config=config, name=name)
    await character.initialize_async(track_target=track_target)
    return character
