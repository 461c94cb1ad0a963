"""Shared fixtures for rig tests"""

import asyncio

import pytest

from procanim.animation.skeleton_config import LIZZY_CONFIG
from procanim.config.settings import DEFAULT_CHARACTER_PATH
from procanim.core.transform import Transform
from procanim.gameplay.lizard_character import LizardCharacter
from procanim.loaders.skeleton_loader import load_skeleton


@pytest.fixture
def lizzy_skeleton():
    """Freshly loaded bundled lizard skeleton"""
    return load_skeleton(DEFAULT_CHARACTER_PATH)


@pytest.fixture
def lizzy_joints(lizzy_skeleton):
    """Resolved role -> joint mapping for the bundled lizard"""
    model = Transform("lizzy")
    for root in lizzy_skeleton.root_joints:
        model.add_child(root)
    return LIZZY_CONFIG.resolve(lizzy_skeleton, model)


@pytest.fixture
def lizard(lizzy_skeleton):
    """Initialized lizard with a fixed target (no tracker)"""
    character = LizardCharacter(lizzy_skeleton)
    asyncio.run(character.initialize_async(track_target=False))
    yield character
    character.shutdown()
