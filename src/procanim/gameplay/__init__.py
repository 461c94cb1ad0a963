"""Gameplay modules"""

from .lizard_character import LizardCharacter, load_character_async
from .orientation_controller import OrientationController

__all__ = ["LizardCharacter", "OrientationController", "load_character_async"]
