"""
Animation System

Skeleton configuration, IK chains and solvers, and the gait state machine.
"""

from .skeleton import Skeleton
from .skeleton_config import (
    LIZZY_CONFIG,
    Joint,
    JointBasis,
    JointRole,
    MissingJointError,
    RigConfigurationError,
    SkeletonConfig,
)
from .ik_chain import ChainSettings, ChainTopologyError, IkNode, InverseKinematicsChain
from .chain_table import CHAIN_TABLE, ChainSpec, ChainType, UnknownChainTypeError, create_ik_chain
from .tasks import CycleTask, DelayTask, EndlessTask, FrameScheduler, FrameTask, TimedTask
from .gait import GaitController, GaitState, LimbGait

__all__ = [
    'Skeleton',
    'LIZZY_CONFIG',
    'Joint',
    'JointBasis',
    'JointRole',
    'MissingJointError',
    'RigConfigurationError',
    'SkeletonConfig',
    'ChainSettings',
    'ChainTopologyError',
    'IkNode',
    'InverseKinematicsChain',
    'CHAIN_TABLE',
    'ChainSpec',
    'ChainType',
    'UnknownChainTypeError',
    'create_ik_chain',
    'CycleTask',
    'DelayTask',
    'EndlessTask',
    'FrameScheduler',
    'FrameTask',
    'TimedTask',
    'GaitController',
    'GaitState',
    'LimbGait',
]
