#!/usr/bin/env python3
"""
ProcAnim - Headless Demo

Loads the bundled lizard, drags the target around it for a few seconds
at 60 fps and logs what the limbs and chains are doing.
"""

import asyncio
import logging
import math

from procanim import ChainType, load_character_async
from procanim.config.settings import DEFAULT_CHARACTER_PATH

logger = logging.getLogger(__name__)

FRAME_TIME = 1.0 / 60.0
DRAG_SECONDS = 4.0
IDLE_SECONDS = 2.0
CAMERA_POSITION = (0.0, 0.4, 0.8)


def _touch_point(t: float):
    """Touch point sweeping in an arc around the character."""
    angle = math.pi * 0.5 + math.pi * 1.2 * (t / DRAG_SECONDS)
    return (0.35 * math.cos(angle), 0.08, 0.35 * math.sin(angle))


def _log_state(lizard, t: float):
    states = ", ".join(f"{name}={state.value}" for name, state in lizard.limb_states().items())
    tips = ", ".join(
        f"{chain_type.name}=({tip[0]:.3f}, {tip[1]:.3f}, {tip[2]:.3f})"
        for chain_type in (ChainType.SPINE, ChainType.TAIL)
        for tip in [lizard.chain_pose(chain_type)[-1]]
    )
    logger.info("t=%.2fs forward=(%.3f, %.3f) | %s | %s", t, lizard.forward[0], lizard.forward[2], states, tips)


async def run():
    lizard = await load_character_async(DEFAULT_CHARACTER_PATH)
    tracker = lizard.target_tracker
    tracker.set_camera_position(CAMERA_POSITION)

    t = 0.0
    tracker.begin_drag()
    while t < DRAG_SECONDS:
        tracker.set_touch_point(_touch_point(t))
        lizard.update(FRAME_TIME)
        if lizard.scheduler.frame_count % 30 == 0:
            _log_state(lizard, t)
        t += FRAME_TIME
    tracker.end_drag()

    while t < DRAG_SECONDS + IDLE_SECONDS:
        lizard.update(FRAME_TIME)
        if lizard.scheduler.frame_count % 30 == 0:
            _log_state(lizard, t)
        t += FRAME_TIME

    steps = {name: limb.step_count for name, limb in lizard.gait.limbs.items()}
    logger.info("Steps taken: %s", steps)
    lizard.shutdown()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run())
