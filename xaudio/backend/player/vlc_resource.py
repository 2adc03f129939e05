from __future__ import annotations

"""Audio resource backed by python-vlc."""

from pathlib import Path
from typing import Any, Optional
import threading

from xaudio.backend.common.logging import get_logger
from xaudio.backend.player.exceptions import PlayerError, ResourceError
from xaudio.backend.player.resource import ResourceSignals
from xaudio.backend.player.vlc_paths import resolve_vlc_runtime

log = get_logger(__name__)

DEFAULT_PARSE_TIMEOUT_MS = 5000


class VlcAudioResource:
    """Drives a single ``vlc.MediaPlayer`` and reports its lifecycle signals."""

    def __init__(
        self,
        signals: ResourceSignals,
        *,
        vlc_root: Optional[str] = None,
        vlc_module: Any = None,
        instance: Any = None,
        parse_timeout_ms: int = DEFAULT_PARSE_TIMEOUT_MS,
    ) -> None:
        if vlc_module is None:
            runtime = resolve_vlc_runtime(vlc_root)
            if runtime is None:
                log.info("vlc_runtime_not_configured", extra={"hint": "Using system VLC installation"})
            try:
                import vlc  # type: ignore
            except Exception as exc:  # noqa: BLE001
                raise PlayerError(f"python-vlc import failed: {exc}") from exc
            vlc_module = vlc
        self._vlc = vlc_module
        self._instance = instance or vlc_module.Instance()
        self._player = self._instance.media_player_new()
        if self._player is None:
            raise PlayerError("VLC could not create a media player")
        self._event_manager = self._player.event_manager()
        self._signals = signals
        self._parse_timeout_ms = parse_timeout_ms
        self._lock = threading.Lock()
        self._media: Any = None
        self._url: Optional[str] = None
        self._is_stream = False
        self._released = False
        self._register_events()

    # ------------------------------------------------------------------
    # AudioResource contract
    # ------------------------------------------------------------------
    @property
    def source(self) -> Optional[str]:
        return self._url

    def set_source(self, url: str, *, is_stream: bool = False) -> None:
        with self._lock:
            self._url = url
            self._is_stream = is_stream
        self.load()

    def load(self) -> None:
        with self._lock:
            url, is_stream = self._url, self._is_stream
        if not url:
            self._signals.failed("No media source configured")
            return
        try:
            media = self._create_media(url, is_stream)
        except PlayerError as exc:
            log.warning("media_create_failed", extra={"url": url, "error": str(exc)})
            self._signals.failed(str(exc))
            return

        self._detach_media_events()
        with self._lock:
            self._media = media
        self._player.set_media(media)
        media.event_manager().event_attach(
            self._vlc.EventType.MediaParsedChanged,
            self._handle_parsed,
        )
        flag = self._vlc.MediaParseFlag.network if is_stream else self._vlc.MediaParseFlag.local
        if media.parse_with_options(flag, self._parse_timeout_ms) == -1:
            self._signals.failed(f"Unable to parse media {url}")
            return
        log.debug("media_loading", extra={"url": url, "is_stream": is_stream})

    def play(self) -> None:
        if self._player.get_media() is None:
            raise ResourceError("No media loaded")
        if self._player.play() == -1:
            raise ResourceError("VLC refused to start playback")

    def pause(self) -> None:
        self._player.set_pause(1)

    def set_volume(self, volume: float) -> None:
        self._player.audio_set_volume(max(0, int(round(volume * 100))))

    def set_current_time(self, seconds: float) -> None:
        self._player.set_time(int(seconds * 1000))

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._detach_media_events()
        for event_type in self._player_events():
            self._event_manager.event_detach(event_type)
        self._player.stop()
        self._player.release()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _create_media(self, url: str, is_stream: bool):  # noqa: ANN001
        if is_stream or "://" in url:
            return self._instance.media_new(url)
        path = Path(url).expanduser()
        if not path.exists():
            raise PlayerError(f"Media path not found: {url}")
        return self._instance.media_new_path(str(path))

    def _player_events(self) -> tuple[Any, ...]:
        events = self._vlc.EventType
        return (
            events.MediaPlayerEncounteredError,
            events.MediaPlayerEndReached,
            events.MediaPlayerTimeChanged,
            events.MediaPlayerLengthChanged,
        )

    def _register_events(self) -> None:
        events = self._vlc.EventType
        self._event_manager.event_attach(events.MediaPlayerEncounteredError, self._handle_error)
        self._event_manager.event_attach(events.MediaPlayerEndReached, self._handle_end)
        self._event_manager.event_attach(events.MediaPlayerTimeChanged, self._handle_time)
        self._event_manager.event_attach(events.MediaPlayerLengthChanged, self._handle_length)

    def _detach_media_events(self) -> None:
        with self._lock:
            media = self._media
        if media is not None:
            media.event_manager().event_detach(self._vlc.EventType.MediaParsedChanged)

    def _handle_parsed(self, event) -> None:  # noqa: ANN001
        with self._lock:
            media = self._media
        if media is None:
            return
        statuses = self._vlc.MediaParsedStatus
        status = media.get_parsed_status()
        if status == statuses.done:
            length_ms = media.get_duration()
            if length_ms and length_ms > 0:
                self._signals.duration_change(length_ms / 1000.0)
            self._signals.ready()
        elif status in (statuses.failed, statuses.timeout):
            name = status.name if hasattr(status, "name") else str(status)
            self._signals.failed(f"Media parsing {name}")

    def _handle_error(self, event) -> None:  # noqa: ANN001
        self._signals.failed("VLC playback error")

    def _handle_end(self, event) -> None:  # noqa: ANN001
        self._signals.ended()

    def _handle_time(self, event) -> None:  # noqa: ANN001
        self._signals.time_update(max(event.u.new_time, 0) / 1000.0)

    def _handle_length(self, event) -> None:  # noqa: ANN001
        self._signals.duration_change(max(event.u.new_length, 0) / 1000.0)


__all__ = ["VlcAudioResource"]
