"""Lightweight delayed task execution with cancellation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol
import threading

from xaudio.backend.common.errors import TaskError
from xaudio.backend.common.logging import get_logger

log = get_logger(__name__)


class TimerLike(Protocol):
    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[..., TimerLike]


@dataclass
class TaskSpec:
    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = None
    delay_sec: float = 0.0
    name: str = "task"

    def __post_init__(self):
        if self.kwargs is None:
            self.kwargs = {}
        if self.delay_sec < 0:
            self.delay_sec = 0.0


class ScheduledTask:
    """Handle for a single delayed call; ``cancel`` is safe to call repeatedly."""

    def __init__(self, spec: TaskSpec, on_settled: Callable[["ScheduledTask"], None]):
        self.spec = spec
        self._on_settled = on_settled
        self._lock = threading.Lock()
        self._cancelled = False
        self._started = False
        self._timer: Optional[TimerLike] = None

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        with self._lock:
            return not self._cancelled and not self._started

    def cancel(self) -> bool:
        with self._lock:
            if self._cancelled or self._started:
                return False
            self._cancelled = True
            timer = self._timer
        if timer is not None:
            timer.cancel()
        log.debug("task_cancelled", extra={"task": self.name})
        self._on_settled(self)
        return True

    def _bind(self, timer: TimerLike) -> None:
        self._timer = timer

    def _run(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._started = True
        try:
            log.debug("task_start", extra={"task": self.name})
            self.spec.fn(*self.spec.args, **self.spec.kwargs)
            log.debug("task_done", extra={"task": self.name})
        except Exception as e:  # noqa: BLE001
            log.error("task_fail", extra={"task": self.name, "error": str(e)})
        finally:
            self._on_settled(self)


class TaskRunner:
    """Tiny in-process runner for one-shot delayed callbacks."""

    def __init__(
        self,
        *,
        context: Optional[str] = None,
        timer_factory: Optional[TimerFactory] = None,
    ):
        self._context = context or "task_runner"
        self._timer_factory: TimerFactory = timer_factory or threading.Timer
        self._pending: set[ScheduledTask] = set()
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def schedule(self, spec: TaskSpec) -> ScheduledTask:
        with self._lock:
            if self._closed:
                raise TaskError("TaskRunner is closed")
            task = ScheduledTask(spec, self._settled)
            self._pending.add(task)

        timer = self._timer_factory(spec.delay_sec, task._run)
        timer.daemon = True
        task._bind(timer)
        timer.start()
        log.debug(
            "task_scheduled",
            extra={"task": spec.name, "delay_sec": spec.delay_sec, "context": self._context},
        )
        return task

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            tasks = list(self._pending)
        for task in tasks:
            task.cancel()

    def _settled(self, task: ScheduledTask) -> None:
        with self._lock:
            self._pending.discard(task)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
