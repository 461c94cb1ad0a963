"""Skeleton loader for JSON-defined character rigs."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..animation.skeleton import Skeleton
from ..animation.skeleton_config import RigConfigurationError
from ..config.settings import PROJECT_ROOT
from ..core.transform import Transform

logger = logging.getLogger(__name__)


class CharacterAssetError(RigConfigurationError):
    """Character asset is missing, unreadable or structurally invalid."""


def _floats(value, count: int, field_name: str, joint_name: str) -> Tuple[float, ...]:
    try:
        data = tuple(float(v) for v in value)
    except (TypeError, ValueError) as exc:
        raise CharacterAssetError(
            f"Joint '{joint_name}': '{field_name}' must be a list of numbers, got {value!r}"
        ) from exc
    if len(data) != count:
        raise CharacterAssetError(
            f"Joint '{joint_name}': '{field_name}' expects {count} components, got {len(data)}"
        )
    return data


@dataclass
class JointDefinition:
    """One joint entry of a skeleton descriptor."""

    name: str
    parent: Optional[str] = None
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Optional[Tuple[float, float, float, float]] = None
    world_space: bool = False

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "JointDefinition":
        """
        Create a joint definition from a JSON-compatible dictionary.

        Either local ``position``/``rotation`` or ``world_position``/
        ``world_rotation`` may be given; world values win when both exist.
        """
        if not isinstance(payload, dict):
            raise CharacterAssetError(f"Joint entry must be an object, got {payload!r}")
        if "name" not in payload:
            raise CharacterAssetError(f"Joint entry without a name: {payload}")

        name = str(payload["name"])
        definition = cls(name=name, parent=payload.get("parent"))

        if "world_position" in payload or "world_rotation" in payload:
            definition.world_space = True
            position = payload.get("world_position", (0.0, 0.0, 0.0))
            rotation = payload.get("world_rotation")
        else:
            position = payload.get("position", (0.0, 0.0, 0.0))
            rotation = payload.get("rotation")

        definition.position = _floats(position, 3, "position", name)
        if rotation is not None:
            definition.rotation = _floats(rotation, 4, "rotation", name)
        return definition


def skeleton_from_dict(payload: Dict[str, Any]) -> Skeleton:
    """
    Build a skeleton from a descriptor dictionary.

    Parents must be listed before their children.

    Raises:
        CharacterAssetError: On malformed entries or unknown parents
    """
    if not isinstance(payload, dict):
        raise CharacterAssetError(f"Skeleton descriptor must be an object, got {type(payload).__name__}")

    skeleton = Skeleton(name=str(payload.get("name", "Skeleton")))
    entries: List[Dict[str, Any]] = payload.get("joints", [])
    if not isinstance(entries, list):
        raise CharacterAssetError(f"Skeleton '{skeleton.name}': 'joints' must be a list")
    if not entries:
        raise CharacterAssetError(f"Skeleton '{skeleton.name}' defines no joints")

    for entry in entries:
        definition = JointDefinition.from_dict(entry)

        parent = None
        if definition.parent is not None:
            parent = skeleton.get_joint(definition.parent)
            if parent is None:
                raise CharacterAssetError(
                    f"Joint '{definition.name}' references unknown parent '{definition.parent}'"
                )

        joint = Transform(definition.name, parent=parent)
        if definition.world_space:
            joint.world_position = definition.position
            if definition.rotation is not None:
                joint.world_rotation = definition.rotation
        else:
            joint.local_position = definition.position
            if definition.rotation is not None:
                joint.local_rotation = definition.rotation

        try:
            skeleton.add_joint(joint)
        except ValueError as exc:
            raise CharacterAssetError(str(exc)) from exc

    skeleton.capture_bind_pose()
    return skeleton


def load_skeleton(path: Path | str) -> Skeleton:
    """Load a skeleton descriptor from disk."""

    skeleton_path = Path(path)
    if not skeleton_path.is_absolute():
        skeleton_path = PROJECT_ROOT / skeleton_path
    skeleton_path = skeleton_path.resolve()

    if not skeleton_path.exists():
        logger.error("Character asset not found: %s", skeleton_path)
        raise CharacterAssetError(f"Character asset not found: {skeleton_path}")

    try:
        with skeleton_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot read character asset %s: %s", skeleton_path, exc)
        raise CharacterAssetError(f"Cannot read character asset {skeleton_path}: {exc}") from exc

    skeleton = skeleton_from_dict(payload)
    logger.info("Loaded skeleton '%s' with %d joints from %s", skeleton.name, len(skeleton), skeleton_path.name)
    return skeleton
