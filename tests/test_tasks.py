from __future__ import annotations

import threading

import pytest

from xaudio.backend.common.errors import TaskError
from xaudio.backend.common.tasks import TaskRunner, TaskSpec


def test_task_spec_defaults() -> None:
    spec = TaskSpec(fn=print, delay_sec=-1)
    assert spec.kwargs == {}
    assert spec.delay_sec == 0.0
    assert spec.name == "task"


def test_schedule_runs_with_args(runner, clock) -> None:
    calls = []
    task = runner.schedule(TaskSpec(fn=lambda a, b=0: calls.append((a, b)), args=(1,), kwargs={"b": 2}, delay_sec=0.5))
    assert task.active
    assert runner.pending() == 1
    assert clock.live[0].daemon is True

    clock.advance(0.5)
    assert calls == [(1, 2)]
    assert not task.active
    assert runner.pending() == 0


def test_cancel_before_run(runner, clock) -> None:
    calls = []
    task = runner.schedule(TaskSpec(fn=lambda: calls.append(1), delay_sec=1.0, name="cancel_me"))
    assert task.cancel() is True
    assert task.cancel() is False
    assert task.cancelled
    clock.advance(2.0)
    assert calls == []
    assert runner.pending() == 0


def test_failing_task_is_contained(runner, clock, caplog) -> None:
    def boom() -> None:
        raise ValueError("nope")

    runner.schedule(TaskSpec(fn=boom, delay_sec=0.1, name="boom"))
    with caplog.at_level("ERROR"):
        clock.advance(0.1)
    assert runner.pending() == 0
    assert any(record.getMessage() == "task_fail" and record.task == "boom" for record in caplog.records)


def test_close_cancels_pending_and_rejects_new_work(clock) -> None:
    runner = TaskRunner(timer_factory=clock)
    calls = []
    runner.schedule(TaskSpec(fn=lambda: calls.append(1), delay_sec=1.0))
    runner.close()
    assert runner.closed
    clock.advance(5.0)
    assert calls == []
    with pytest.raises(TaskError):
        runner.schedule(TaskSpec(fn=lambda: None))


def test_default_timer_factory_runs_on_a_thread() -> None:
    done = threading.Event()
    with TaskRunner() as runner:
        runner.schedule(TaskSpec(fn=done.set, delay_sec=0.01))
        assert done.wait(2.0)
