from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from xaudio.backend.catalog import Catalog, Track, is_remote_source, load_catalog
from xaudio.backend.common.errors import CatalogError
from xaudio.backend.network_handlers.session import NotFound


def _payload(count: int = 3) -> list[dict]:
    return [
        {"id": idx, "name": f"T{idx}", "title": f"Title {idx}", "url": f"/m/{idx}.mp3", "isRadio": idx == count - 1}
        for idx in range(count)
    ]


class FakeHttp:
    def __init__(self, payload=None, error: Exception | None = None) -> None:  # noqa: ANN001 - test double
        self.payload = payload
        self.error = error
        self.requested: list[str] = []

    def get_json(self, url: str):  # noqa: ANN201 - test double
        self.requested.append(url)
        if self.error:
            raise self.error
        return self.payload

    def close(self) -> None:
        raise AssertionError("borrowed sessions must not be closed")


def test_track_accepts_alias_and_field_name() -> None:
    by_alias = Track.model_validate({"id": 0, "name": "a", "title": "A", "url": "x", "isRadio": True})
    by_name = Track(id=0, name="a", title="A", url="x", is_radio=True)
    assert by_alias == by_name
    assert by_alias.model_dump(by_alias=True)["isRadio"] is True


def test_track_is_immutable() -> None:
    track = Track(id=0, name="a", title="A", url="x")
    with pytest.raises(ValidationError):
        track.name = "b"


def test_catalog_from_list_and_wrapped_payload() -> None:
    assert len(Catalog.from_payload(_payload())) == 3
    wrapped = Catalog.from_payload({"tracks": _payload(2)})
    assert wrapped.first.id == 0
    assert wrapped.last.is_radio


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"tracks": []},
        {"songs": _payload()},
        [{"id": 0, "name": "a", "title": "A"}],
        [{"id": -1, "name": "a", "title": "A", "url": "x"}],
        [{"id": 0, "name": "a", "title": "A", "url": ""}],
        "not a list",
    ],
)
def test_invalid_payloads(payload) -> None:  # noqa: ANN001
    with pytest.raises(CatalogError):
        Catalog.from_payload(payload)


def test_ids_must_match_positions() -> None:
    tracks = _payload()
    tracks[1]["id"] = 2
    tracks[2]["id"] = 1
    with pytest.raises(CatalogError, match="position"):
        Catalog.from_payload(tracks)


def test_lookup_and_neighbours(catalog) -> None:
    assert catalog.get(2).id == 2
    assert catalog.get(99) is None
    assert catalog.get(True) is None
    assert catalog.next_of(catalog[1]).id == 2
    assert catalog.next_of(catalog.last) is catalog.last
    assert catalog.previous_of(catalog.first) is catalog.first
    assert [t.id for t in catalog] == [0, 1, 2, 3, 4]
    assert catalog.as_dicts()[4]["isRadio"] is True


def test_is_remote_source() -> None:
    assert is_remote_source("https://example.com/list.json")
    assert is_remote_source("  HTTP://example.com")
    assert not is_remote_source("/tmp/list.json")
    assert not is_remote_source("file:///tmp/list.json")


def test_load_catalog_from_file(tmp_path: Path) -> None:
    path = tmp_path / "playlist.json"
    path.write_text(json.dumps({"tracks": _payload(4)}), encoding="utf-8")
    catalog = load_catalog(path)
    assert len(catalog) == 4
    assert load_catalog(str(path))[3].is_radio


def test_load_catalog_missing_or_broken_file(tmp_path: Path) -> None:
    with pytest.raises(CatalogError, match="not found"):
        load_catalog(tmp_path / "missing.json")
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogError, match="Unable to read"):
        load_catalog(broken)


def test_load_catalog_remote() -> None:
    http = FakeHttp(payload={"tracks": _payload()})
    catalog = load_catalog("https://example.com/playlist.json", http=http)
    assert len(catalog) == 3
    assert http.requested == ["https://example.com/playlist.json"]


def test_load_catalog_remote_failure() -> None:
    http = FakeHttp(error=NotFound("404 Not Found"))
    with pytest.raises(CatalogError, match="Unable to fetch"):
        load_catalog("https://example.com/missing.json", http=http)


def test_packaged_default_playlist_is_valid() -> None:
    default = Path(__file__).resolve().parents[1] / "xaudio" / "config" / "playlist.json"
    catalog = load_catalog(default)
    assert len(catalog) == 5
    assert catalog.last.is_radio
