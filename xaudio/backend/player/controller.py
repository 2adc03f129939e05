from __future__ import annotations

"""Finite-state playback controller driving a single audio resource."""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional
import threading

from xaudio.backend.catalog.models import Catalog, Track
from xaudio.backend.common.logging import get_logger
from xaudio.backend.common.tasks import TaskRunner
from xaudio.backend.player import machine
from xaudio.backend.player.context import (
    DEFAULT_VOLUME,
    PlaybackContext,
    initial_context,
    is_valid_seek_time,
    reduce,
)
from xaudio.backend.player.machine import (
    PlaybackEvent,
    PlaybackStatus,
    ResourceFailed,
    Retry,
)
from xaudio.backend.player.resource import AudioResource
from xaudio.backend.player.retry import DEFAULT_RETRY_DELAY_SEC, RetryScheduler

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ControllerSnapshot:
    status: PlaybackStatus
    context: PlaybackContext

    @property
    def current_track(self) -> Track:
        return self.context.current_track

    @property
    def volume(self) -> float:
        return self.context.volume

    @property
    def is_loading(self) -> bool:
        return self.status is PlaybackStatus.LOADING

    @property
    def is_paused(self) -> bool:
        return self.status is PlaybackStatus.PAUSED

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def is_ended(self) -> bool:
        return self.status is PlaybackStatus.ENDED

    @property
    def is_error(self) -> bool:
        return self.status is PlaybackStatus.FAILURE


Listener = Callable[[ControllerSnapshot], None]
HandleProvider = Callable[[], Optional[AudioResource]]


class PlaybackController:
    """Runs the playback state machine for one mounted player.

    Events are processed one at a time to completion. ``send`` may be called
    from resource callbacks, the retry timer or while another event is being
    processed; such events wait in a mailbox and run afterwards.
    """

    def __init__(
        self,
        catalog: Catalog,
        *,
        initial_volume: float = DEFAULT_VOLUME,
        retry_delay_sec: float = DEFAULT_RETRY_DELAY_SEC,
        task_runner: Optional[TaskRunner] = None,
        handle_provider: Optional[HandleProvider] = None,
    ) -> None:
        self._catalog = catalog
        self._state_lock = threading.Lock()
        self._status = PlaybackStatus.LOADING
        self._context = initial_context(catalog, initial_volume)
        self._owns_runner = task_runner is None
        self._task_runner = task_runner or TaskRunner(context="playback")
        self._retry = RetryScheduler(
            self._task_runner,
            self._fire_retry,
            delay_sec=retry_delay_sec,
        )
        self._handle_provider = handle_provider
        self._mailbox: Deque[PlaybackEvent] = deque()
        self._mailbox_lock = threading.Lock()
        self._dispatching = False
        self._listeners: List[Listener] = []
        self._disposed = False
        self._effects: Dict[str, Callable[[PlaybackContext, PlaybackContext, PlaybackEvent], None]] = {
            machine.PLAY: self._play,
            machine.PAUSE: self._pause,
            machine.LOAD: self._load,
            machine.APPLY_SOURCE: self._apply_source,
            machine.RELOAD_SOURCE: self._reload_source,
            machine.APPLY_VOLUME: self._apply_volume,
            machine.APPLY_SEEK: self._apply_seek,
        }

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def context(self) -> PlaybackContext:
        return self._context

    @property
    def retry_pending(self) -> bool:
        return self._retry.armed

    @property
    def disposed(self) -> bool:
        return self._disposed

    def snapshot(self) -> ControllerSnapshot:
        with self._state_lock:
            return ControllerSnapshot(status=self._status, context=self._context)

    def matches(self, status: PlaybackStatus) -> bool:
        return self._status is status

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------
    def send(self, event: PlaybackEvent) -> ControllerSnapshot:
        with self._mailbox_lock:
            if self._disposed:
                log.debug("event_after_dispose", extra={"event": event.type.value})
                return self.snapshot()
            self._mailbox.append(event)
            if self._dispatching:
                return self.snapshot()
            self._dispatching = True

        try:
            while True:
                with self._mailbox_lock:
                    if not self._mailbox or self._disposed:
                        self._mailbox.clear()
                        self._dispatching = False
                        break
                    next_event = self._mailbox.popleft()
                self._process(next_event)
        except BaseException:
            with self._mailbox_lock:
                self._dispatching = False
            raise
        return self.snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispose(self) -> None:
        with self._mailbox_lock:
            if self._disposed:
                return
            self._disposed = True
            self._mailbox.clear()
        self._retry.close()
        if self._owns_runner:
            self._task_runner.close()
        self._listeners.clear()
        log.info("controller_disposed", extra={"status": self._status.value})

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()

    # ------------------------------------------------------------------
    # Transition processing
    # ------------------------------------------------------------------
    def _process(self, event: PlaybackEvent) -> None:
        previous_status = self._status
        transition = machine.lookup(previous_status, event.type)
        if transition is None:
            log.debug(
                "event_ignored",
                extra={"state": previous_status.value, "event": event.type.value},
            )
            return

        previous = self._context
        updated = reduce(previous, transition.reducer, event, self._catalog)
        with self._state_lock:
            self._status = transition.target
            self._context = updated

        log.info(
            "playback_transition",
            extra={
                "event": event.type.value,
                "source": previous_status.value,
                "target": transition.target.value,
                "track_id": updated.current_track.id,
            },
        )

        self._run_failure_hooks(previous_status, transition.target)
        for effect in transition.effects:
            self._effects[effect](previous, updated, event)
        self._notify()

    def _run_failure_hooks(self, source: PlaybackStatus, target: PlaybackStatus) -> None:
        if target is PlaybackStatus.FAILURE and source is not PlaybackStatus.FAILURE:
            self._retry.arm()
        elif source is PlaybackStatus.FAILURE and target is not PlaybackStatus.FAILURE:
            self._retry.disarm()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001
                log.exception("listener_failed")

    def _enqueue(self, event: PlaybackEvent) -> None:
        with self._mailbox_lock:
            if not self._disposed:
                self._mailbox.append(event)

    def _fire_retry(self) -> None:
        handle = self._handle_provider() if self._handle_provider else self._context.resource_handle
        self.send(Retry(handle=handle))

    # ------------------------------------------------------------------
    # Effects (all no-ops without an attached handle)
    # ------------------------------------------------------------------
    def _play(self, previous: PlaybackContext, context: PlaybackContext, event: PlaybackEvent) -> None:
        handle = context.resource_handle
        if handle is None:
            return
        try:
            handle.play()
        except Exception as exc:  # noqa: BLE001
            log.warning("play_rejected", extra={"error": str(exc), "track_id": context.current_track.id})
            self._enqueue(ResourceFailed(reason=str(exc)))

    def _pause(self, previous: PlaybackContext, context: PlaybackContext, event: PlaybackEvent) -> None:
        handle = context.resource_handle
        if handle is None:
            return
        try:
            handle.pause()
        except Exception as exc:  # noqa: BLE001
            log.warning("pause_failed", extra={"error": str(exc)})

    def _load(self, previous: PlaybackContext, context: PlaybackContext, event: PlaybackEvent) -> None:
        handle = context.resource_handle
        if handle is None:
            return
        try:
            handle.load()
        except Exception as exc:  # noqa: BLE001
            log.warning("load_failed", extra={"error": str(exc), "track_id": context.current_track.id})
            self._enqueue(ResourceFailed(reason=str(exc)))

    def _apply_source(self, previous: PlaybackContext, context: PlaybackContext, event: PlaybackEvent) -> None:
        if context.current_track == previous.current_track:
            return
        self._point_handle(context)

    def _reload_source(self, previous: PlaybackContext, context: PlaybackContext, event: PlaybackEvent) -> None:
        # leaving failure disarms the retry, so the handle must be reloaded even on the same track
        self._point_handle(context, fail_on_error=True)

    def _point_handle(self, context: PlaybackContext, *, fail_on_error: bool = False) -> None:
        handle = context.resource_handle
        track = context.current_track
        if handle is None:
            return
        try:
            handle.set_source(track.url, is_stream=track.is_radio)
        except Exception as exc:  # noqa: BLE001
            log.warning("source_change_failed", extra={"error": str(exc), "track_id": track.id})
            if fail_on_error:
                self._enqueue(ResourceFailed(reason=str(exc)))

    def _apply_volume(self, previous: PlaybackContext, context: PlaybackContext, event: PlaybackEvent) -> None:
        handle = context.resource_handle
        if handle is None:
            return
        try:
            handle.set_volume(context.volume)
        except Exception as exc:  # noqa: BLE001
            log.warning("volume_change_failed", extra={"error": str(exc), "volume": context.volume})

    def _apply_seek(self, previous: PlaybackContext, context: PlaybackContext, event: PlaybackEvent) -> None:
        handle = context.resource_handle
        seconds = getattr(event, "time", None)
        if handle is None:
            return
        if not is_valid_seek_time(seconds):
            log.debug("seek_dropped", extra={"time": repr(seconds)})
            return
        try:
            handle.set_current_time(seconds)
        except Exception as exc:  # noqa: BLE001
            log.warning("seek_failed", extra={"error": str(exc), "time": seconds})


__all__ = ["ControllerSnapshot", "PlaybackController"]
