"""One-shot recovery timer armed while the controller sits in ``failure``."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from xaudio.backend.common.logging import get_logger
from xaudio.backend.common.tasks import ScheduledTask, TaskRunner, TaskSpec

log = get_logger(__name__)

DEFAULT_RETRY_DELAY_SEC = 3.0


class RetryScheduler:
    """Keeps at most one pending retry callback alive.

    Every :meth:`arm` supersedes the previous timer. A generation counter makes
    sure a callback that was already running when it got superseded or disarmed
    never reaches ``on_fire``.
    """

    def __init__(
        self,
        runner: TaskRunner,
        on_fire: Callable[[], None],
        *,
        delay_sec: float = DEFAULT_RETRY_DELAY_SEC,
        name: str = "playback_retry",
    ) -> None:
        self._runner = runner
        self._on_fire = on_fire
        self._delay_sec = max(0.0, delay_sec)
        self._name = name
        self._lock = threading.Lock()
        self._task: Optional[ScheduledTask] = None
        self._generation = 0
        self._closed = False

    @property
    def delay_sec(self) -> float:
        return self._delay_sec

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._task is not None and self._task.active

    def arm(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            self._task = self._runner.schedule(
                TaskSpec(
                    fn=self._fire,
                    args=(generation,),
                    delay_sec=self._delay_sec,
                    name=self._name,
                )
            )
        log.info("retry_armed", extra={"delay_sec": self._delay_sec})

    def disarm(self) -> bool:
        with self._lock:
            cancelled = self._cancel_locked()
        if cancelled:
            log.info("retry_disarmed")
        return cancelled

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._cancel_locked()

    def _cancel_locked(self) -> bool:
        self._generation += 1
        task, self._task = self._task, None
        if task is None:
            return False
        return task.cancel()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                return
            self._task = None
        log.info("retry_fired")
        self._on_fire()


__all__ = ["DEFAULT_RETRY_DELAY_SEC", "RetryScheduler"]
