"""Playback state machine, controller and VLC-backed audio resource."""

from xaudio.backend.player.context import PlaybackContext
from xaudio.backend.player.controller import ControllerSnapshot, PlaybackController
from xaudio.backend.player.exceptions import PlayerError, ResourceError
from xaudio.backend.player.machine import (
    ChangeTrack,
    ChangeVolume,
    Ended,
    EventType,
    NextTrack,
    Pause,
    Play,
    PlaybackEvent,
    PlaybackStatus,
    PrevTrack,
    ResourceFailed,
    ResourceReady,
    Retry,
    Seek,
)
from xaudio.backend.player.resource import AudioResource, ResourceSignals
from xaudio.backend.player.retry import RetryScheduler
from xaudio.backend.player.session import PlayerSession, PlayerSnapshot

__all__ = [
    "AudioResource",
    "ChangeTrack",
    "ChangeVolume",
    "ControllerSnapshot",
    "Ended",
    "EventType",
    "NextTrack",
    "Pause",
    "Play",
    "PlaybackContext",
    "PlaybackController",
    "PlaybackEvent",
    "PlaybackStatus",
    "PlayerError",
    "PlayerSession",
    "PlayerSnapshot",
    "PrevTrack",
    "ResourceError",
    "ResourceFailed",
    "ResourceReady",
    "ResourceSignals",
    "Retry",
    "RetryScheduler",
    "Seek",
]
