"""Tests for frame tasks and the frame scheduler"""

import math

import pytest

from procanim.animation.tasks import CycleTask, EndlessTask, FrameScheduler, TimedTask
from procanim.config.settings import DELTA_TIME_SMOOTHING, MAX_DELTA_TIME

DT = 0.0625


def test_endless_task_runs_until_finished():
    scheduler = FrameScheduler()
    calls = []
    task = scheduler.play_endless(lambda t: calls.append(scheduler.frame_count))

    for _ in range(3):
        scheduler.tick(DT)
    task.finish()
    scheduler.tick(DT)

    assert calls == [1, 2, 3]
    assert scheduler.active_count == 0


def test_finish_is_immediate_within_a_tick():
    """A task cancelled earlier in the same tick never runs"""
    scheduler = FrameScheduler()
    calls = []
    victim = EndlessTask(lambda t: calls.append("victim"))
    scheduler.play_endless(lambda t: victim.finish())
    scheduler.add(victim)

    scheduler.tick(DT)
    assert calls == []


def test_timed_task_progress_and_completion():
    scheduler = FrameScheduler()
    progress = []
    completed = []
    task = scheduler.play_for(0.5, progress.append, on_complete=lambda: completed.append(True))

    for _ in range(8):
        scheduler.tick(DT)

    assert task.finished
    assert completed == [True]
    assert progress[0] == pytest.approx(0.125)
    assert progress[-1] == 1.0
    assert progress == sorted(progress)


def test_timed_task_cancel_skips_completion():
    scheduler = FrameScheduler()
    completed = []
    task = scheduler.play_for(1.0, lambda p: None, on_complete=lambda: completed.append(True))
    scheduler.tick(DT)
    task.finish()
    for _ in range(20):
        scheduler.tick(DT)
    assert completed == []


def test_zero_duration_completes_on_first_tick():
    scheduler = FrameScheduler()
    progress = []
    scheduler.play_for(0.0, progress.append)
    scheduler.tick(DT)
    assert progress == [1.0]


def test_on_next_frame_never_runs_in_current_tick():
    """Work deferred from inside a tick runs on the following tick"""
    scheduler = FrameScheduler()
    log = []

    def defer(task):
        task.finish()
        scheduler.on_next_frame(lambda: log.append(scheduler.frame_count))

    scheduler.play_endless(defer)
    scheduler.tick(DT)
    assert log == []
    scheduler.tick(DT)
    assert log == [2]


def test_wait_for_delay():
    scheduler = FrameScheduler()
    fired = []
    scheduler.wait_for(0.25, lambda: fired.append(scheduler.frame_count))
    for _ in range(6):
        scheduler.tick(DT)
    assert fired == [4]


def test_cycle_task_phase_and_index():
    scheduler = FrameScheduler()
    samples = []
    scheduler.add(CycleTask(0.5, lambda phase, index, task: samples.append((phase, index))))

    for _ in range(12):
        scheduler.tick(DT)

    assert samples[-1] == (pytest.approx(0.5), 1)


def test_cycle_task_rejects_bad_period():
    with pytest.raises(ValueError):
        CycleTask(0.0, lambda phase, index, task: None)


def test_smooth_delta_time():
    scheduler = FrameScheduler()
    scheduler.tick(0.02)
    assert scheduler.smooth_delta_time == pytest.approx(0.02)
    scheduler.tick(0.04)
    assert scheduler.smooth_delta_time == pytest.approx(0.02 + (0.04 - 0.02) * DELTA_TIME_SMOOTHING)


def test_long_frames_are_clamped():
    scheduler = FrameScheduler()
    scheduler.tick(5.0)
    assert scheduler.delta_time == MAX_DELTA_TIME
    assert math.isclose(scheduler.time, MAX_DELTA_TIME)


def test_cancel_all():
    scheduler = FrameScheduler()
    tasks = [scheduler.play_endless(lambda t: None) for _ in range(3)]
    scheduler.play_for(1.0, lambda p: None)
    assert scheduler.active_count == 4

    scheduler.cancel_all()
    assert scheduler.active_count == 0
    assert all(task.finished for task in tasks)


def test_timed_task_reports_progress_property():
    task = TimedTask(1.0, lambda p: None)
    assert task.progress == 0.0
