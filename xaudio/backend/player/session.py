"""Host session wiring a catalog, a concrete audio resource and the controller.

The session is what a window mounts: it forwards resource lifecycle signals to
the controller as events, mirrors the continuous time/duration signals that do
not pass through the state machine, and exposes a read-only snapshot plus the
user controls the presentation layer calls.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import threading
from typing import Any, Callable, Optional

from xaudio.backend.catalog.models import Catalog, Track
from xaudio.backend.common.logging import get_logger
from xaudio.backend.common.tasks import TaskRunner
from xaudio.backend.player.context import DEFAULT_VOLUME
from xaudio.backend.player.controller import ControllerSnapshot, PlaybackController
from xaudio.backend.player.machine import (
    ChangeTrack,
    ChangeVolume,
    Ended,
    NextTrack,
    Pause,
    Play,
    PlaybackStatus,
    PrevTrack,
    ResourceFailed,
    ResourceReady,
    Retry,
    Seek,
)
from xaudio.backend.player.resource import AudioResource, ResourceSignals
from xaudio.backend.player.retry import DEFAULT_RETRY_DELAY_SEC

log = get_logger(__name__)

ERROR_MESSAGE = "We're sorry, but there was an error processing your request."

ResourceFactory = Callable[[ResourceSignals], AudioResource]


def format_time(seconds: float) -> str:
    """Render elapsed seconds as ``MM:SS`` (``H:MM:SS`` past one hour)."""
    if not isinstance(seconds, (int, float)) or not math.isfinite(seconds) or seconds < 0:
        seconds = 0
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def progress_value(is_radio: bool, seconds: float) -> float:
    """Value usable by a progress bar; live streams and bogus times read as zero."""
    if is_radio or not isinstance(seconds, (int, float)) or not math.isfinite(seconds):
        return 0.0
    return float(seconds)


def clamp_volume(volume: float) -> float:
    if not isinstance(volume, (int, float)) or math.isnan(volume):
        return 0.0
    return max(0.0, min(1.0, float(volume)))


@dataclass(frozen=True, slots=True)
class PlayerSnapshot:
    status: PlaybackStatus
    current_track: Track
    volume: float
    current_time: float
    duration: float

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

    @property
    def is_radio(self) -> bool:
        return self.current_track.is_radio

    @property
    def marquee_text(self) -> str:
        return ERROR_MESSAGE if self.is_error else self.current_track.title

    @property
    def display_time(self) -> str:
        return format_time(self.current_time)

    @property
    def progress(self) -> tuple[float, float]:
        return (
            progress_value(self.is_radio, self.current_time),
            progress_value(self.is_radio, self.duration),
        )

    def as_dict(self) -> dict[str, Any]:
        value, maximum = self.progress
        return {
            "status": self.status.value,
            "is_loading": self.is_loading,
            "is_paused": self.is_paused,
            "is_playing": self.is_playing,
            "is_ended": self.is_ended,
            "is_error": self.is_error,
            "is_radio": self.is_radio,
            "current_track": self.current_track.model_dump(by_alias=True),
            "volume": self.volume,
            "current_time": self.current_time,
            "duration": self.duration,
            "display_time": self.display_time,
            "marquee": self.marquee_text,
            "progress": {"value": value, "max": maximum},
        }


class PlayerSession:
    """Mounts a :class:`PlaybackController` against one audio resource."""

    def __init__(
        self,
        catalog: Catalog,
        resource_factory: ResourceFactory,
        *,
        initial_volume: float = DEFAULT_VOLUME,
        retry_delay_sec: float = DEFAULT_RETRY_DELAY_SEC,
        task_runner: Optional[TaskRunner] = None,
    ) -> None:
        self._catalog = catalog
        self._mirror_lock = threading.Lock()
        self._current_time = 0.0
        self._duration = 0.0
        self._signals = ResourceSignals(
            on_ready=self._on_ready,
            on_failed=self._on_failed,
            on_ended=self._on_ended,
            on_time_update=self._on_time_update,
            on_duration_change=self._on_duration_change,
        )
        self._resource = resource_factory(self._signals)
        self._controller = PlaybackController(
            catalog,
            initial_volume=initial_volume,
            retry_delay_sec=retry_delay_sec,
            task_runner=task_runner,
            handle_provider=lambda: self._resource,
        )
        self._last_track_id = self._controller.context.current_track.id
        self._unsubscribe = self._controller.subscribe(self._on_transition)
        self._started = False
        self._closed = False

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def controller(self) -> PlaybackController:
        return self._controller

    @property
    def resource(self) -> AudioResource:
        return self._resource

    def start(self) -> None:
        """Point the resource at the first track and let it report readiness."""
        if self._started:
            return
        self._started = True
        context = self._controller.context
        track = context.current_track
        self._resource.set_volume(context.volume)
        self._resource.set_source(track.url, is_stream=track.is_radio)
        log.info("session_started", extra={"track_id": track.id, "tracks": len(self._catalog)})

    def snapshot(self) -> PlayerSnapshot:
        controller_state = self._controller.snapshot()
        with self._mirror_lock:
            current_time, duration = self._current_time, self._duration
        return PlayerSnapshot(
            status=controller_state.status,
            current_track=controller_state.current_track,
            volume=controller_state.volume,
            current_time=current_time,
            duration=duration,
        )

    # ------------------------------------------------------------------
    # User controls
    # ------------------------------------------------------------------
    def play(self) -> PlayerSnapshot:
        return self._dispatch(Play())

    def pause(self) -> PlayerSnapshot:
        return self._dispatch(Pause())

    def toggle(self) -> PlayerSnapshot:
        if self._controller.matches(PlaybackStatus.PLAYING):
            return self.pause()
        return self.play()

    def next_track(self) -> PlayerSnapshot:
        return self._dispatch(NextTrack())

    def prev_track(self) -> PlayerSnapshot:
        return self._dispatch(PrevTrack())

    def change_track(self, track_id: int) -> PlayerSnapshot:
        return self._dispatch(ChangeTrack(track_id=track_id))

    def change_volume(self, volume: float) -> PlayerSnapshot:
        return self._dispatch(ChangeVolume(volume=clamp_volume(volume)))

    def seek(self, seconds: float) -> PlayerSnapshot:
        if self.can_seek:
            return self._dispatch(Seek(time=seconds))
        log.debug("seek_disabled", extra={"track_id": self._controller.context.current_track.id})
        return self.snapshot()

    @property
    def can_seek(self) -> bool:
        return not self._controller.context.current_track.is_radio

    def retry(self) -> PlayerSnapshot:
        return self._dispatch(Retry(handle=self._resource))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
        self._controller.dispose()
        release = getattr(self._resource, "release", None)
        if callable(release):
            try:
                release()
            except Exception as exc:  # noqa: BLE001
                log.warning("resource_release_failed", extra={"error": str(exc)})
        log.info("session_closed")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Resource signals
    # ------------------------------------------------------------------
    def _on_ready(self) -> None:
        self._controller.send(ResourceReady(handle=self._resource))

    def _on_failed(self, reason: Optional[str] = None) -> None:
        log.warning("resource_failed", extra={"reason": reason})
        self._controller.send(ResourceFailed(reason=reason))

    def _on_ended(self) -> None:
        self._controller.send(Ended())

    def _on_time_update(self, seconds: float) -> None:
        with self._mirror_lock:
            self._current_time = seconds

    def _on_duration_change(self, seconds: float) -> None:
        with self._mirror_lock:
            self._duration = seconds

    def _on_transition(self, snapshot: ControllerSnapshot) -> None:
        track_id = snapshot.current_track.id
        if track_id == self._last_track_id:
            return
        self._last_track_id = track_id
        with self._mirror_lock:
            self._current_time = 0.0
            self._duration = 0.0

    def _dispatch(self, event) -> PlayerSnapshot:  # noqa: ANN001
        self._controller.send(event)
        return self.snapshot()


__all__ = [
    "ERROR_MESSAGE",
    "PlayerSession",
    "PlayerSnapshot",
    "clamp_volume",
    "format_time",
    "progress_value",
]
