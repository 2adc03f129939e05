"""Playback state machine definition.

The machine is flat: five states, a closed set of tagged events and a single
transition table mapping ``(state, event type)`` to a target state, an optional
context reducer and an ordered list of resource effects. Anything missing from
the table is ignored by the controller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Mapping, Optional

from xaudio.backend.player.resource import AudioResource


class PlaybackStatus(str, Enum):
    LOADING = "loading"
    PAUSED = "paused"
    PLAYING = "playing"
    ENDED = "ended"
    FAILURE = "failure"


class EventType(str, Enum):
    PLAY = "PLAY"
    PAUSE = "PAUSE"
    ENDED = "ENDED"
    RESOURCE_READY = "RESOURCE_READY"
    RESOURCE_FAILED = "RESOURCE_FAILED"
    RETRY = "RETRY"
    PREV_TRACK = "PREV_TRACK"
    NEXT_TRACK = "NEXT_TRACK"
    CHANGE_TRACK = "CHANGE_TRACK"
    CHANGE_VOLUME = "CHANGE_VOLUME"
    SEEK = "SEEK"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlaybackEvent:
    type: ClassVar[EventType]


@dataclass(frozen=True, slots=True)
class Play(PlaybackEvent):
    type: ClassVar[EventType] = EventType.PLAY


@dataclass(frozen=True, slots=True)
class Pause(PlaybackEvent):
    type: ClassVar[EventType] = EventType.PAUSE


@dataclass(frozen=True, slots=True)
class Ended(PlaybackEvent):
    type: ClassVar[EventType] = EventType.ENDED


@dataclass(frozen=True, slots=True)
class ResourceReady(PlaybackEvent):
    type: ClassVar[EventType] = EventType.RESOURCE_READY
    handle: Optional[AudioResource] = None


@dataclass(frozen=True, slots=True)
class ResourceFailed(PlaybackEvent):
    type: ClassVar[EventType] = EventType.RESOURCE_FAILED
    reason: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Retry(PlaybackEvent):
    type: ClassVar[EventType] = EventType.RETRY
    handle: Optional[AudioResource] = None


@dataclass(frozen=True, slots=True)
class PrevTrack(PlaybackEvent):
    type: ClassVar[EventType] = EventType.PREV_TRACK


@dataclass(frozen=True, slots=True)
class NextTrack(PlaybackEvent):
    type: ClassVar[EventType] = EventType.NEXT_TRACK


@dataclass(frozen=True, slots=True)
class ChangeTrack(PlaybackEvent):
    type: ClassVar[EventType] = EventType.CHANGE_TRACK
    track_id: int = 0


@dataclass(frozen=True, slots=True)
class ChangeVolume(PlaybackEvent):
    type: ClassVar[EventType] = EventType.CHANGE_VOLUME
    volume: float = 0.0


@dataclass(frozen=True, slots=True)
class Seek(PlaybackEvent):
    type: ClassVar[EventType] = EventType.SEEK
    time: float = 0.0


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------

# Reducer names (see ``context.REDUCERS``)
ATTACH_HANDLE = "attach_handle"
SELECT_TRACK = "select_track"
STORE_VOLUME = "store_volume"

# Effect names (see ``PlaybackController._EFFECTS``)
PLAY = "play"
PAUSE = "pause"
LOAD = "load"
APPLY_SOURCE = "apply_source"
RELOAD_SOURCE = "reload_source"
APPLY_VOLUME = "apply_volume"
APPLY_SEEK = "apply_seek"


@dataclass(frozen=True, slots=True)
class Transition:
    target: PlaybackStatus
    reducer: Optional[str] = None
    effects: tuple[str, ...] = ()


NAVIGATION_EVENTS: tuple[EventType, ...] = (
    EventType.PREV_TRACK,
    EventType.NEXT_TRACK,
    EventType.CHANGE_TRACK,
)


def _navigation(target: PlaybackStatus, *, play: bool = False, reload: bool = False) -> dict[EventType, Transition]:
    source = RELOAD_SOURCE if reload else APPLY_SOURCE
    effects = (source, PLAY) if play else (source,)
    return {
        event_type: Transition(target, SELECT_TRACK, effects)
        for event_type in NAVIGATION_EVENTS
    }


def _volume(target: PlaybackStatus) -> dict[EventType, Transition]:
    return {EventType.CHANGE_VOLUME: Transition(target, STORE_VOLUME, (APPLY_VOLUME,))}


def _seek(target: PlaybackStatus) -> dict[EventType, Transition]:
    return {EventType.SEEK: Transition(target, None, (APPLY_SEEK,))}


_S = PlaybackStatus

TRANSITIONS: Mapping[PlaybackStatus, Mapping[EventType, Transition]] = {
    _S.LOADING: {
        EventType.RESOURCE_READY: Transition(_S.PAUSED, ATTACH_HANDLE),
        EventType.RESOURCE_FAILED: Transition(_S.FAILURE),
    },
    _S.PAUSED: {
        EventType.PLAY: Transition(_S.PLAYING, None, (PLAY,)),
        EventType.RESOURCE_FAILED: Transition(_S.FAILURE),
        **_seek(_S.PAUSED),
        **_navigation(_S.PAUSED),
        **_volume(_S.PAUSED),
    },
    _S.PLAYING: {
        EventType.PAUSE: Transition(_S.PAUSED, None, (PAUSE,)),
        EventType.ENDED: Transition(_S.ENDED),
        EventType.RESOURCE_FAILED: Transition(_S.FAILURE),
        **_seek(_S.PLAYING),
        **_navigation(_S.PLAYING, play=True),
        **_volume(_S.PLAYING),
    },
    _S.ENDED: {
        EventType.PLAY: Transition(_S.PLAYING, None, (PLAY,)),
        EventType.RESOURCE_FAILED: Transition(_S.FAILURE),
        **_seek(_S.ENDED),
        **_navigation(_S.PLAYING, play=True),
        **_volume(_S.ENDED),
    },
    _S.FAILURE: {
        EventType.RETRY: Transition(_S.LOADING, ATTACH_HANDLE, (LOAD,)),
        **_navigation(_S.LOADING, reload=True),
    },
}


def lookup(status: PlaybackStatus, event_type: EventType) -> Optional[Transition]:
    return TRANSITIONS[status].get(event_type)


def accepted_events(status: PlaybackStatus) -> frozenset[EventType]:
    return frozenset(TRANSITIONS[status])


__all__ = [
    "ChangeTrack",
    "ChangeVolume",
    "Ended",
    "EventType",
    "NAVIGATION_EVENTS",
    "NextTrack",
    "Pause",
    "Play",
    "PlaybackEvent",
    "PlaybackStatus",
    "PrevTrack",
    "ResourceFailed",
    "ResourceReady",
    "Retry",
    "Seek",
    "TRANSITIONS",
    "Transition",
    "accepted_events",
    "lookup",
]
