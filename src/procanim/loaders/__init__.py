"""Character asset loaders"""
from .skeleton_loader import CharacterAssetError, JointDefinition, load_skeleton, skeleton_from_dict

__all__ = [
    "CharacterAssetError",
    "JointDefinition",
    "load_skeleton",
    "skeleton_from_dict",
]
