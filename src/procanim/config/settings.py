"""
Rig Configuration Settings

All tuning constants for the procedural animation rig.
Modify these values to change solver, gait and gaze behavior.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# Project Paths
# ============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
DEFAULT_CHARACTER_PATH = ASSETS_DIR / "characters" / "lizzy.json"
RIG_SETTINGS_PATH = ASSETS_DIR / "config" / "rig_settings.json"

# ============================================================================
# Inverse Kinematics
# ============================================================================

IK_DEFAULT_ITERATIONS = 16          # Forward/backward passes per solve
IK_TOLERANCE = 1e-4                 # Early exit when tip is this close to target
IK_STICK_TO_INITIAL_FACTOR = 0.5    # Fraction pulled back toward rest each frame (springy chains)
IK_MIN_BONE_LENGTH = 1e-6           # Bones shorter than this are treated as degenerate

# ============================================================================
# Gait (limb stepping)
# ============================================================================

MIN_STEP_DISTANCE = 0.02        # Distance from ideal foot position that triggers a step
STEP_TIME_PER_UNIT = 12.0       # Step duration = STEP_TIME_PER_UNIT * travel distance
STEP_RELEASE_FRACTION = 0.4     # Fraction of step after which the mirrored limb may step
STEP_LIFT_PER_UNIT = 1.0        # Arc control point height = STEP_LIFT_PER_UNIT * travel distance

# ============================================================================
# Body Orientation and Gaze
# ============================================================================

TURN_SPEED_PER_SEC = 0.8            # Fraction of remaining turn applied per second
ALIGNMENT_DOT_THRESHOLD = 0.999     # Facing target when dot(forward, dir) reaches this
SPINE_BEND_FACTOR = 0.5             # Spine direction blend toward target direction
TAIL_BEND_FACTOR = 0.5              # Tail direction blend toward reflected direction
TAIL_LENGTH_BASE = 0.9              # Tail reach = length * (dot * scale + base)
TAIL_LENGTH_DOT_SCALE = 0.1
HEAD_GAZE_BLEND = 0.5               # Head rotation blend toward the target every frame

# ============================================================================
# Target Acquisition
# ============================================================================

TARGET_RADIUS_AROUND_CHARACTER = 0.3    # Upper bound of the acquisition sphere radius
TARGET_CAMERA_DISTANCE_DIVISOR = 3.0    # Sphere radius never exceeds camera distance / this
TARGET_DRAG_FOLLOW = 0.1                # Fraction moved toward the touch point per frame
TARGET_BOB_AMPLITUDE = 0.05             # Idle bobbing height
TARGET_BOB_PERIOD = 2.0                 # Idle bobbing cycle in seconds

# ============================================================================
# Frame Timing
# ============================================================================

DELTA_TIME_SMOOTHING = 0.2      # Weight of the newest frame in the smoothed delta time
MAX_DELTA_TIME = 0.1            # Clamp for long frames (debugger pauses, hitches)


# ============================================================================
# Optional Overrides - Loaded from JSON Config
# ============================================================================

_OVERRIDABLE = (
    "MIN_STEP_DISTANCE",
    "STEP_TIME_PER_UNIT",
    "STEP_RELEASE_FRACTION",
    "STEP_LIFT_PER_UNIT",
    "TURN_SPEED_PER_SEC",
    "ALIGNMENT_DOT_THRESHOLD",
    "SPINE_BEND_FACTOR",
    "TAIL_BEND_FACTOR",
    "HEAD_GAZE_BLEND",
    "TARGET_BOB_AMPLITUDE",
    "TARGET_BOB_PERIOD",
)


def _load_rig_overrides(config_path: Path = RIG_SETTINGS_PATH) -> dict:
    """
    Load tuning overrides from a JSON configuration file.

    Only keys listed in ``_OVERRIDABLE`` are honored.

    Returns:
        Dictionary mapping constant names to override values
    """
    if not config_path.exists():
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Error loading rig settings from %s: %s", config_path, e)
        return {}

    if not isinstance(config, dict):
        logger.error("Rig settings in %s must be a JSON object, got %s", config_path, type(config).__name__)
        return {}

    overrides = {}
    for key, value in config.items():
        if key not in _OVERRIDABLE:
            logger.warning("Ignoring unknown rig setting '%s'", key)
            continue
        try:
            overrides[key] = float(value)
        except (TypeError, ValueError):
            logger.error("Rig setting '%s' must be a number, got %r", key, value)
    return overrides


globals().update(_load_rig_overrides())
