from __future__ import annotations

"""Audio resource contract driven by the playback controller."""

from typing import Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class AudioResource(Protocol):
    """Opaque rendering handle supplied by the host.

    ``play`` may raise :class:`~xaudio.backend.player.exceptions.ResourceError`
    when the resource refuses to start. Failures that happen later are reported
    through the host's ``on_failed`` signal instead.
    """

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def load(self) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def set_current_time(self, seconds: float) -> None: ...

    def set_source(self, url: str, *, is_stream: bool = False) -> None: ...


SignalCallback = Callable[[], None]
FailureCallback = Callable[[Optional[str]], None]
ValueCallback = Callable[[float], None]


class ResourceSignals:
    """Callbacks a resource uses to report lifecycle and continuous signals."""

    def __init__(
        self,
        *,
        on_ready: Optional[SignalCallback] = None,
        on_failed: Optional[FailureCallback] = None,
        on_ended: Optional[SignalCallback] = None,
        on_time_update: Optional[ValueCallback] = None,
        on_duration_change: Optional[ValueCallback] = None,
    ) -> None:
        self.on_ready = on_ready
        self.on_failed = on_failed
        self.on_ended = on_ended
        self.on_time_update = on_time_update
        self.on_duration_change = on_duration_change

    def ready(self) -> None:
        if self.on_ready:
            self.on_ready()

    def failed(self, reason: Optional[str] = None) -> None:
        if self.on_failed:
            self.on_failed(reason)

    def ended(self) -> None:
        if self.on_ended:
            self.on_ended()

    def time_update(self, seconds: float) -> None:
        if self.on_time_update:
            self.on_time_update(seconds)

    def duration_change(self, seconds: float) -> None:
        if self.on_duration_change:
            self.on_duration_change(seconds)


__all__ = ["AudioResource", "ResourceSignals"]
