"""Tests for the assembled lizard character"""

import asyncio

import numpy as np
import pytest

from procanim.animation.chain_table import ChainType, UnknownChainTypeError
from procanim.animation.gait import GaitState
from procanim.animation.ik_chain import ChainTopologyError
from procanim.animation.skeleton_config import JointRole
from procanim.gameplay.lizard_character import LizardCharacter, load_character_async
from procanim.loaders.skeleton_loader import CharacterAssetError

FRAME = 1.0 / 60.0
PAIRS = (("IK_ARM_L", "IK_ARM_R"), ("IK_LEG_L", "IK_LEG_R"))


def test_initialize_builds_every_chain(lizard):
    assert lizard.is_initialized
    assert set(lizard.chains) == set(ChainType)
    assert all(chain.is_initialized for chain in lizard.chains.values())
    assert set(lizard.limb_states()) == {"IK_ARM_L", "IK_ARM_R", "IK_LEG_L", "IK_LEG_R"}


def test_configure_chain_before_initialize(lizzy_skeleton):
    character = LizardCharacter(lizzy_skeleton)
    character.configure_chain(ChainType.TAIL, iterations=8)
    character.configure_chain("IK_TAIL", stick_to_initial=False)

    asyncio.run(character.initialize_async(track_target=False))

    assert character.tail.settings.iterations == 8
    assert not character.tail.settings.stick_to_initial
    character.shutdown()


def test_configure_chain_after_initialize_raises(lizard):
    with pytest.raises(ChainTopologyError):
        lizard.configure_chain(ChainType.SPINE, iterations=4)


def test_configure_unknown_chain_raises(lizzy_skeleton):
    character = LizardCharacter(lizzy_skeleton)
    with pytest.raises(UnknownChainTypeError):
        character.configure_chain("IK_WING", iterations=4)
    with pytest.raises(ChainTopologyError):
        character.configure_chain(ChainType.SPINE, stiffness=1.0)


def test_update_before_initialize_raises(lizzy_skeleton):
    with pytest.raises(RuntimeError):
        LizardCharacter(lizzy_skeleton).update(FRAME)


def test_missing_asset_raises():
    with pytest.raises(CharacterAssetError):
        asyncio.run(load_character_async("assets/characters/missing.json"))


def test_idle_character_stays_grounded(lizard):
    for _ in range(300):
        lizard.update(FRAME)

    assert all(state is GaitState.GROUNDED for state in lizard.limb_states().values())
    assert all(limb.step_count == 0 for limb in lizard.gait.limbs.values())
    assert np.allclose(lizard.forward, [0.0, 0.0, 1.0])


def test_turning_toward_target_walks(lizard):
    """Turning drags the feet off their rest positions so the limbs step"""
    lizard.target = (0.4, 0.1, 0.0)

    for _ in range(600):
        lizard.update(FRAME)
        for left, right in PAIRS:
            assert not (lizard.gait.limb(left).blocking and lizard.gait.limb(right).blocking)

    assert lizard.forward[0] > 0.5
    assert sum(limb.step_count for limb in lizard.gait.limbs.values()) > 0
    for chain_type in ChainType:
        assert np.all(np.isfinite(lizard.chain_pose(chain_type)))


def test_tracked_target_drag():
    lizard = asyncio.run(load_character_async())
    tracker = lizard.target_tracker
    assert tracker is not None

    tracker.begin_drag()
    for _ in range(60):
        tracker.set_touch_point((0.3, 0.05, 0.1))
        lizard.update(FRAME)
    tracker.end_drag()

    assert not tracker.is_dragging
    assert np.allclose(np.asarray(lizard.target), np.asarray(tracker.position))
    assert lizard.orientation.last_dot < 1.0
    lizard.shutdown()


def test_query_helpers(lizard):
    position, rotation = lizard.joint_pose(JointRole.HEAD)
    assert len(position) == 3
    assert len(rotation) == 4

    assert lizard.get_chain("IK_TAIL") is lizard.tail
    assert len(lizard.chain_pose(ChainType.SPINE)) == 4
    assert lizard.get_joint(JointRole.NECK).name == "Neck_M"
    assert np.allclose(lizard.back, -lizard.forward)
    assert "Lizzy" in repr(lizard)

    with pytest.raises(UnknownChainTypeError):
        lizard.get_chain("IK_WING")


def test_moving_the_character(lizard):
    lizard.position = (1.0, 0.0, 0.0)
    assert np.allclose(np.asarray(lizard.position), [1.0, 0.0, 0.0])
    assert lizard.get_joint(JointRole.HIP).world_position[0] == pytest.approx(1.0)
