"""
Gait Controller

Per-limb stepping state machine. A grounded limb keeps its effector pinned
in world space; once the spine has been solved for the frame, the limb
checks how far its ideal (rest) position has drifted away and, if the
mirrored limb is not mid-step, lifts and replants on a curved arc.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional

import numpy as np

from ..config.settings import MIN_STEP_DISTANCE, STEP_LIFT_PER_UNIT, STEP_RELEASE_FRACTION, STEP_TIME_PER_UNIT
from ..core import math3d
from .ik_chain import InverseKinematicsChain
from .tasks import DelayTask, EndlessTask, FrameScheduler, TimedTask

logger = logging.getLogger(__name__)


class GaitState(Enum):
    GROUNDED = "grounded"
    STEPPING = "stepping"


class LimbGait:
    """
    Gait state of one limb.

    Attributes:
        chain: Limb IK chain
        partner: Mirrored limb (left arm for right arm, ...)
        state: Grounded or stepping
        blocking: True from step start until the release fraction of the step
        anchor: World position the effector is pinned to while grounded
    """

    def __init__(self, chain: InverseKinematicsChain):
        self.chain = chain
        self.partner: Optional[LimbGait] = None
        self.state = GaitState.GROUNDED
        self.blocking = False
        self.anchor = np.array(chain.world_position)
        self.step_distance = 0.0
        self.step_progress = 0.0
        self.step_count = 0
        self._check_task: Optional[EndlessTask] = None
        self._start_task: Optional[DelayTask] = None
        self._step_task: Optional[TimedTask] = None

    @property
    def name(self) -> str:
        return self.chain.name

    @property
    def drift(self) -> float:
        """Distance between the current effector target and its ideal position."""
        return math3d.distance(self.chain.world_position, self.chain.rest_world_position)

    def __repr__(self):
        return f"LimbGait(name='{self.name}', state={self.state.value}, blocking={self.blocking})"


def step_duration(distance: float) -> float:
    """Seconds a step of ``distance`` takes."""
    return STEP_TIME_PER_UNIT * distance


class GaitController:
    """
    Sequences stepping for mirrored limb pairs.

    Grounded checks are queued as post-solve actions of the spine chain so
    they always see the rest positions of the already bent spine. A step
    that is decided in one frame starts on the next.
    """

    def __init__(self, scheduler: FrameScheduler, spine: InverseKinematicsChain):
        """
        Initialize the gait controller.

        Args:
            scheduler: Frame scheduler that drives checks and steps
            spine: Spine chain whose solve precedes every grounded check
        """
        self.scheduler = scheduler
        self.spine = spine
        self.limbs: Dict[str, LimbGait] = {}

    def add_pair(self, left: InverseKinematicsChain, right: InverseKinematicsChain):
        """Register two mirrored limbs that must not start stepping together."""
        left_gait = LimbGait(left)
        right_gait = LimbGait(right)
        left_gait.partner = right_gait
        right_gait.partner = left_gait
        self.limbs[left.name] = left_gait
        self.limbs[right.name] = right_gait

    def start(self):
        """Arm the grounded check of every limb."""
        for limb in self.limbs.values():
            self._arm_grounded_check(limb)

    def stop(self):
        for limb in self.limbs.values():
            for task in (limb._check_task, limb._start_task, limb._step_task):
                if task is not None:
                    task.finish()

    def limb(self, name: str) -> LimbGait:
        return self.limbs[name]

    def limb_states(self) -> Dict[str, GaitState]:
        return {name: limb.state for name, limb in self.limbs.items()}

    # ------------------------------------------------------------------
    # Grounded
    # ------------------------------------------------------------------
    def _arm_grounded_check(self, limb: LimbGait):
        limb.state = GaitState.GROUNDED
        limb.blocking = False
        limb.step_progress = 0.0
        limb.anchor = np.array(limb.chain.world_position)

        def queue_check(task: EndlessTask):
            self.spine.add_post_solve_action(lambda: self._check_grounded(limb, task))

        limb._check_task = self.scheduler.play_endless(queue_check, name=f"{limb.name}-grounded")

    def _check_grounded(self, limb: LimbGait, task: EndlessTask):
        if task.finished:
            return
        if self.try_begin_step(limb):
            return
        # Keep the effector planted
        limb.chain.world_position = limb.anchor

    def try_begin_step(self, limb: LimbGait) -> bool:
        """
        Start stepping ``limb`` if it has drifted and its partner is not blocking.

        The step itself begins on the next frame.

        Returns:
            True if the limb transitioned to stepping
        """
        if limb.state is GaitState.STEPPING:
            return False
        if limb.partner is not None and limb.partner.blocking:
            return False
        if limb.drift <= MIN_STEP_DISTANCE:
            return False

        if limb._check_task is not None:
            limb._check_task.finish()
        limb.state = GaitState.STEPPING
        limb.blocking = True
        logger.debug("Limb '%s' starts stepping (drift %.4f)", limb.name, limb.drift)
        limb._start_task = self.scheduler.on_next_frame(lambda: self._step(limb), name=f"{limb.name}-step-start")
        return True

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def _step(self, limb: LimbGait):
        chain = limb.chain
        start = np.array(chain.world_position)
        distance = limb.drift
        limb.step_distance = distance
        limb.step_count += 1

        def advance(progress: float):
            limb.step_progress = progress
            # Rest position is re-read every frame so the foot lands where the body is now
            end = np.array(chain.rest_world_position)
            control = (start + end) * 0.5 + math3d.UP * (distance * STEP_LIFT_PER_UNIT)
            chain.world_position = math3d.quadratic_bezier(start, control, end, math3d.smoothstep01(progress))
            if limb.blocking and progress >= STEP_RELEASE_FRACTION:
                limb.blocking = False

        def complete():
            logger.debug("Limb '%s' grounded after %.3fs step", limb.name, step_duration(distance))
            self._arm_grounded_check(limb)

        limb._step_task = self.scheduler.play_for(
            step_duration(distance), advance, on_complete=complete, name=f"{limb.name}-step"
        )
