"""
Frame Tasks

Per-frame units of work driven by a single :class:`FrameScheduler`.

A task is a plain object with an ``advance(delta_time)`` step and a
``finished`` flag. Calling :meth:`FrameTask.finish` takes effect
immediately: a finished task is never advanced again, even later in the
same tick.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..config.settings import DELTA_TIME_SMOOTHING, MAX_DELTA_TIME
from ..core import math3d

logger = logging.getLogger(__name__)


class FrameTask:
    """Base class for scheduled per-frame work."""

    def __init__(self, name: str = ""):
        self.name = name or type(self).__name__
        self.elapsed = 0.0
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def finish(self):
        """Stop the task. Safe to call more than once."""
        self._finished = True

    def advance(self, delta_time: float) -> bool:
        """
        Run one frame of the task.

        Args:
            delta_time: Seconds since the previous frame

        Returns:
            True while the task is still running
        """
        if self._finished:
            return False
        self.elapsed += delta_time
        self._step(delta_time)
        return not self._finished

    def _step(self, delta_time: float):
        raise NotImplementedError

    def __repr__(self):
        state = "finished" if self._finished else "running"
        return f"{type(self).__name__}(name='{self.name}', {state})"


class EndlessTask(FrameTask):
    """Calls ``action(task)`` every frame until finished."""

    def __init__(self, action: Callable[['EndlessTask'], None], name: str = ""):
        super().__init__(name)
        self.action = action

    def _step(self, delta_time: float):
        self.action(self)


class TimedTask(FrameTask):
    """
    Runs for a fixed duration, reporting normalized progress.

    ``action(progress)`` receives progress in [0, 1] every frame; the last
    call always receives exactly 1.0. ``on_complete`` runs only when the
    duration elapses, not when the task is cancelled.
    """

    def __init__(
        self,
        duration: float,
        action: Callable[[float], None],
        on_complete: Optional[Callable[[], None]] = None,
        name: str = "",
    ):
        super().__init__(name)
        self.duration = max(0.0, float(duration))
        self.action = action
        self.on_complete = on_complete

    @property
    def progress(self) -> float:
        if self.duration <= 0.0:
            return 1.0
        return math3d.clamp01(self.elapsed / self.duration)

    def _step(self, delta_time: float):
        progress = self.progress
        self.action(progress)
        if progress >= 1.0 and not self._finished:
            self.finish()
            if self.on_complete is not None:
                self.on_complete()


class DelayTask(FrameTask):
    """Calls ``action()`` once after ``delay`` seconds (0 means the next tick)."""

    def __init__(self, delay: float, action: Callable[[], None], name: str = ""):
        super().__init__(name)
        self.delay = max(0.0, float(delay))
        self.action = action

    def _step(self, delta_time: float):
        if self.elapsed >= self.delay:
            self.finish()
            self.action()


class CycleTask(FrameTask):
    """
    Repeats with a fixed period until finished.

    ``action(phase, cycle_index, task)`` receives the phase in [0, 1) of
    the current cycle and the number of completed cycles.
    """

    def __init__(self, period: float, action: Callable[[float, int, 'CycleTask'], None], name: str = ""):
        super().__init__(name)
        if period <= 0.0:
            raise ValueError(f"Cycle period must be positive, got {period}")
        self.period = float(period)
        self.action = action

    def _step(self, delta_time: float):
        cycle_index, remainder = divmod(self.elapsed, self.period)
        self.action(remainder / self.period, int(cycle_index), self)


class FrameScheduler:
    """
    Drives every frame task from one ``tick`` per frame.

    Tasks added while a tick is running (including from inside another
    task) are first advanced on the following tick.
    """

    def __init__(self):
        self._tasks: List[FrameTask] = []
        self.frame_count = 0
        self.time = 0.0
        self.delta_time = 0.0
        self.smooth_delta_time = 0.0

    def add(self, task: FrameTask) -> FrameTask:
        """Schedule ``task`` and return it."""
        self._tasks.append(task)
        return task

    def play_endless(self, action: Callable[[EndlessTask], None], name: str = "") -> EndlessTask:
        return self.add(EndlessTask(action, name))

    def play_for(self, duration: float, action: Callable[[float], None],
                 on_complete: Optional[Callable[[], None]] = None, name: str = "") -> TimedTask:
        return self.add(TimedTask(duration, action, on_complete, name))

    def play_cycle(self, period: float, action, name: str = "") -> CycleTask:
        return self.add(CycleTask(period, action, name))

    def wait_for(self, delay: float, action: Callable[[], None], name: str = "") -> DelayTask:
        return self.add(DelayTask(delay, action, name))

    def on_next_frame(self, action: Callable[[], None], name: str = "") -> DelayTask:
        """Run ``action`` at the start of the next tick, never during the current one."""
        return self.add(DelayTask(0.0, action, name or "next-frame"))

    def tick(self, delta_time: float):
        """
        Advance every scheduled task by one frame.

        Args:
            delta_time: Seconds since the previous frame (clamped to MAX_DELTA_TIME)
        """
        delta_time = min(max(0.0, float(delta_time)), MAX_DELTA_TIME)
        if self.frame_count == 0:
            self.smooth_delta_time = delta_time
        else:
            self.smooth_delta_time += (delta_time - self.smooth_delta_time) * DELTA_TIME_SMOOTHING
        self.delta_time = delta_time
        self.time += delta_time
        self.frame_count += 1

        for task in list(self._tasks):
            if not task.finished:
                task.advance(delta_time)

        self._tasks = [task for task in self._tasks if not task.finished]

    def cancel_all(self):
        """Finish every scheduled task."""
        for task in self._tasks:
            task.finish()
        self._tasks.clear()
        logger.debug("Cancelled all frame tasks")

    @property
    def active_count(self) -> int:
        return sum(1 for task in self._tasks if not task.finished)

    @property
    def tasks(self) -> List[FrameTask]:
        return list(self._tasks)

    def __repr__(self):
        return f"FrameScheduler(frame={self.frame_count}, tasks={self.active_count})"
