"""
ProcAnim - Procedural Character Animation

Inverse-kinematics chains, a limb gait state machine and target-driven
body orientation for a rigged quadruped.
"""

# Configuration
from .config.settings import *

# Core
from .core.transform import Transform
from .core.ray import Ray

# Animation
from .animation import (
    ChainType,
    ChainTopologyError,
    FrameScheduler,
    GaitController,
    GaitState,
    InverseKinematicsChain,
    JointRole,
    LIZZY_CONFIG,
    MissingJointError,
    RigConfigurationError,
    Skeleton,
    SkeletonConfig,
    UnknownChainTypeError,
    create_ik_chain,
)

# Loaders
from .loaders import CharacterAssetError, load_skeleton, skeleton_from_dict

# Input
from .input import TargetTracker

# Gameplay
from .gameplay import LizardCharacter, OrientationController, load_character_async

__version__ = "0.1.0"
__all__ = [
    # Config (exported via *)
    # Core
    "Transform",
    "Ray",
    # Animation
    "ChainType",
    "ChainTopologyError",
    "FrameScheduler",
    "GaitController",
    "GaitState",
    "InverseKinematicsChain",
    "JointRole",
    "LIZZY_CONFIG",
    "MissingJointError",
    "RigConfigurationError",
    "Skeleton",
    "SkeletonConfig",
    "UnknownChainTypeError",
    "create_ik_chain",
    # Loaders
    "CharacterAssetError",
    "load_skeleton",
    "skeleton_from_dict",
    # Input
    "TargetTracker",
    # Gameplay
    "LizardCharacter",
    "OrientationController",
    "load_character_async",
]
