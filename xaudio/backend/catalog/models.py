"""Track catalog models.

A catalog is the fixed, ordered playlist the player is mounted with. Entries are
validated once at load time so the rest of the player can rely on two facts:
the catalog is never empty and every track's ``id`` equals its position.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from xaudio.backend.common.errors import CatalogError


class Track(BaseModel):
    """Immutable playlist entry (local file or live stream)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(ge=0)
    name: str = Field(description="Short label shown in the playlist.")
    title: str = Field(description="Display title used by the marquee.")
    url: str = Field(min_length=1, description="Locator of the audio resource.")
    is_radio: bool = Field(default=False, alias="isRadio")


_TRACK_LIST = TypeAdapter(list[Track])


class Catalog(Sequence[Track]):
    """Ordered, read-only sequence of :class:`Track` records."""

    __slots__ = ("_tracks",)

    def __init__(self, tracks: Iterable[Track]):
        items = tuple(tracks)
        if not items:
            raise CatalogError("Catalog must contain at least one track")
        for position, track in enumerate(items):
            if track.id != position:
                raise CatalogError(
                    f"Track ids must match their position: found id {track.id} at position {position}"
                )
        self._tracks = items

    @classmethod
    def from_payload(cls, payload: Any) -> "Catalog":
        if isinstance(payload, dict):
            payload = payload.get("tracks")
        try:
            tracks = _TRACK_LIST.validate_python(payload)
        except ValidationError as exc:
            raise CatalogError(f"Invalid catalog payload: {exc}") from exc
        return cls(tracks)

    def __getitem__(self, index):  # noqa: ANN001
        return self._tracks[index]

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __repr__(self) -> str:
        return f"Catalog({len(self._tracks)} tracks)"

    @property
    def first(self) -> Track:
        return self._tracks[0]

    @property
    def last(self) -> Track:
        return self._tracks[-1]

    def get(self, track_id: Any) -> Optional[Track]:
        # bool is an int subclass; True must not resolve to track 1
        if isinstance(track_id, bool) or not isinstance(track_id, int):
            return None
        return next((track for track in self._tracks if track.id == track_id), None)

    def next_of(self, track: Track) -> Track:
        if track.id < len(self._tracks) - 1:
            return self._tracks[track.id + 1]
        return track

    def previous_of(self, track: Track) -> Track:
        if track.id > 0:
            return self._tracks[track.id - 1]
        return track

    def as_dicts(self) -> list[dict[str, Any]]:
        return [track.model_dump(by_alias=True) for track in self._tracks]


__all__ = ["Catalog", "Track"]
