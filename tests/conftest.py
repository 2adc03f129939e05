from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest

from xaudio.backend.catalog.models import Catalog, Track
from xaudio.backend.common.tasks import TaskRunner
from xaudio.backend.player.controller import PlaybackController
from xaudio.backend.player.exceptions import ResourceError
from xaudio.backend.player.machine import ResourceReady


class FakeResource:
    """Records every call the controller or session makes on it."""

    def __init__(self, signals=None, *, reject_play: bool = False) -> None:  # noqa: ANN001 - test double
        self.signals = signals
        self.reject_play = reject_play
        self.calls: list[tuple[Any, ...]] = []
        self.released = False

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def count(self, name: str) -> int:
        return self.names().count(name)

    def play(self) -> None:
        self.calls.append(("play",))
        if self.reject_play:
            raise ResourceError("playback blocked")

    def pause(self) -> None:
        self.calls.append(("pause",))

    def load(self) -> None:
        self.calls.append(("load",))

    def set_volume(self, volume: float) -> None:
        self.calls.append(("set_volume", volume))

    def set_current_time(self, seconds: float) -> None:
        self.calls.append(("set_current_time", seconds))

    def set_source(self, url: str, *, is_stream: bool = False) -> None:
        self.calls.append(("set_source", url, is_stream))

    def release(self) -> None:
        self.released = True


class ManualTimer:
    def __init__(self, clock: "ManualClock", delay: float, fn: Callable[[], None]) -> None:
        self.clock = clock
        self.due = clock.now + delay
        self.fn = fn
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True
        self.clock.timers.append(self)

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Timer factory compatible with ``threading.Timer`` that only moves on ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def __call__(self, delay: float, fn: Callable[[], None]) -> ManualTimer:
        return ManualTimer(self, delay, fn)

    @property
    def live(self) -> list[ManualTimer]:
        return [t for t in self.timers if t.started and not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        while True:
            due = sorted((t for t in self.live if t.due <= self.now), key=lambda t: t.due)
            if not due:
                return
            timer = due[0]
            timer.fired = True
            timer.fn()


def make_tracks(count: int = 5, *, radio_last: bool = True) -> list[Track]:
    tracks = []
    for idx in range(count):
        is_radio = radio_last and idx == count - 1
        tracks.append(
            Track(
                id=idx,
                name=f"Track {idx}",
                title=f"Artist - Track {idx}",
                url="https://stream.example/live" if is_radio else f"/music/track-{idx}.mp3",
                is_radio=is_radio,
            )
        )
    return tracks


@pytest.fixture
def catalog() -> Catalog:
    return Catalog(make_tracks())


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def runner(clock: ManualClock):
    task_runner = TaskRunner(context="test", timer_factory=clock)
    yield task_runner
    task_runner.close()


@pytest.fixture
def resource() -> FakeResource:
    return FakeResource()


@pytest.fixture
def controller(catalog: Catalog, runner: TaskRunner):
    ctrl = PlaybackController(catalog, task_runner=runner, retry_delay_sec=3.0)
    yield ctrl
    ctrl.dispose()


@pytest.fixture
def ready(controller: PlaybackController, resource: FakeResource) -> PlaybackController:
    controller.send(ResourceReady(handle=resource))
    return controller


# ---------------------------------------------------------------------------
# python-vlc doubles
# ---------------------------------------------------------------------------


class FakeEventManager:
    def __init__(self) -> None:
        self.handlers: dict[Any, Callable[..., None]] = {}

    def event_attach(self, event_type, callback) -> None:  # noqa: ANN001 - test double
        self.handlers[event_type] = callback

    def event_detach(self, event_type) -> None:  # noqa: ANN001 - test double
        self.handlers.pop(event_type, None)

    def emit(self, event_type, event: Optional[Any] = None) -> None:  # noqa: ANN001 - test double
        self.handlers[event_type](event or SimpleNamespace())


class FakeMedia:
    def __init__(self, mrl: str, vlc: SimpleNamespace) -> None:
        self.mrl = mrl
        self.events = FakeEventManager()
        self.parsed_status = vlc.MediaParsedStatus.skipped
        self.duration_ms = 0
        self.parse_calls: list[tuple[Any, int]] = []
        self.parse_result = 0

    def event_manager(self) -> FakeEventManager:
        return self.events

    def parse_with_options(self, flag, timeout) -> int:  # noqa: ANN001 - test double
        self.parse_calls.append((flag, timeout))
        return self.parse_result

    def get_parsed_status(self):  # noqa: ANN201 - test double
        return self.parsed_status

    def get_duration(self) -> int:
        return self.duration_ms


class FakeMediaPlayer:
    def __init__(self) -> None:
        self.events = FakeEventManager()
        self.media: Optional[FakeMedia] = None
        self.play_result = 0
        self.calls: list[tuple[Any, ...]] = []

    def event_manager(self) -> FakeEventManager:
        return self.events

    def set_media(self, media: FakeMedia) -> None:
        self.media = media

    def get_media(self) -> Optional[FakeMedia]:
        return self.media

    def play(self) -> int:
        self.calls.append(("play",))
        return self.play_result

    def set_pause(self, flag: int) -> None:
        self.calls.append(("set_pause", flag))

    def audio_set_volume(self, volume: int) -> None:
        self.calls.append(("audio_set_volume", volume))

    def set_time(self, ms: int) -> None:
        self.calls.append(("set_time", ms))

    def stop(self) -> None:
        self.calls.append(("stop",))

    def release(self) -> None:
        self.calls.append(("release",))


class FakeVlcInstance:
    def __init__(self, vlc: SimpleNamespace) -> None:
        self._vlc = vlc
        self.player = FakeMediaPlayer()
        self.created: list[tuple[str, str]] = []

    def media_player_new(self) -> FakeMediaPlayer:
        return self.player

    def media_new(self, mrl: str) -> FakeMedia:
        self.created.append(("media_new", mrl))
        return FakeMedia(mrl, self._vlc)

    def media_new_path(self, path: str) -> FakeMedia:
        self.created.append(("media_new_path", path))
        return FakeMedia(path, self._vlc)


def make_fake_vlc() -> SimpleNamespace:
    vlc = SimpleNamespace(
        EventType=SimpleNamespace(
            MediaPlayerEncounteredError="error",
            MediaPlayerEndReached="end",
            MediaPlayerTimeChanged="time",
            MediaPlayerLengthChanged="length",
            MediaParsedChanged="parsed",
        ),
        MediaParseFlag=SimpleNamespace(local="local", network="network"),
        MediaParsedStatus=SimpleNamespace(
            skipped=SimpleNamespace(name="skipped"),
            failed=SimpleNamespace(name="failed"),
            timeout=SimpleNamespace(name="timeout"),
            done=SimpleNamespace(name="done"),
        ),
    )
    vlc.Instance = lambda *args: FakeVlcInstance(vlc)
    return vlc


@pytest.fixture
def fake_vlc() -> SimpleNamespace:
    return make_fake_vlc()
