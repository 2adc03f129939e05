from __future__ import annotations

"""Playback context and the pure reducers that evolve it."""

from dataclasses import dataclass, replace
import math
from typing import Any, Callable, Mapping, Optional

from xaudio.backend.catalog.models import Catalog, Track
from xaudio.backend.player.machine import (
    ATTACH_HANDLE,
    SELECT_TRACK,
    STORE_VOLUME,
    EventType,
    PlaybackEvent,
)
from xaudio.backend.player.resource import AudioResource

DEFAULT_VOLUME = 0.7


@dataclass(frozen=True, slots=True)
class PlaybackContext:
    current_track: Track
    volume: float = DEFAULT_VOLUME
    resource_handle: Optional[AudioResource] = None

    @property
    def attached(self) -> bool:
        return self.resource_handle is not None

    def as_dict(self) -> dict[str, object]:
        return {
            "current_track": self.current_track.model_dump(by_alias=True),
            "volume": self.volume,
            "attached": self.attached,
        }


def initial_context(catalog: Catalog, volume: float = DEFAULT_VOLUME) -> PlaybackContext:
    return PlaybackContext(current_track=catalog.first, volume=volume, resource_handle=None)


def is_valid_seek_time(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


# ---------------------------------------------------------------------------
# Reducers: (context, event, catalog) -> context
# ---------------------------------------------------------------------------


def attach_handle(context: PlaybackContext, event: PlaybackEvent, catalog: Catalog) -> PlaybackContext:
    return replace(context, resource_handle=getattr(event, "handle", None))


def next_track(context: PlaybackContext, event: PlaybackEvent, catalog: Catalog) -> PlaybackContext:
    return replace(context, current_track=catalog.next_of(context.current_track))


def previous_track(context: PlaybackContext, event: PlaybackEvent, catalog: Catalog) -> PlaybackContext:
    return replace(context, current_track=catalog.previous_of(context.current_track))


def change_track(context: PlaybackContext, event: PlaybackEvent, catalog: Catalog) -> PlaybackContext:
    track = catalog.get(getattr(event, "track_id", None))
    if track is None:
        return context
    return replace(context, current_track=track)


_TRACK_REDUCERS: Mapping[EventType, Callable[..., PlaybackContext]] = {
    EventType.NEXT_TRACK: next_track,
    EventType.PREV_TRACK: previous_track,
    EventType.CHANGE_TRACK: change_track,
}


def select_track(context: PlaybackContext, event: PlaybackEvent, catalog: Catalog) -> PlaybackContext:
    reducer = _TRACK_REDUCERS.get(event.type)
    if reducer is None:
        return context
    return reducer(context, event, catalog)


def store_volume(context: PlaybackContext, event: PlaybackEvent, catalog: Catalog) -> PlaybackContext:
    # Stored verbatim; range enforcement belongs to the caller.
    return replace(context, volume=getattr(event, "volume"))


REDUCERS: Mapping[str, Callable[[PlaybackContext, PlaybackEvent, Catalog], PlaybackContext]] = {
    ATTACH_HANDLE: attach_handle,
    SELECT_TRACK: select_track,
    STORE_VOLUME: store_volume,
}


def reduce(
    context: PlaybackContext,
    reducer: Optional[str],
    event: PlaybackEvent,
    catalog: Catalog,
) -> PlaybackContext:
    if reducer is None:
        return context
    return REDUCERS[reducer](context, event, catalog)


__all__ = [
    "DEFAULT_VOLUME",
    "PlaybackContext",
    "REDUCERS",
    "attach_handle",
    "change_track",
    "initial_context",
    "is_valid_seek_time",
    "next_track",
    "previous_track",
    "reduce",
    "select_track",
    "store_volume",
]
