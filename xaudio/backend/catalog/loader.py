"""Load a :class:`Catalog` from a JSON file or an HTTP(S) location."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from xaudio.backend.catalog.models import Catalog
from xaudio.backend.common.errors import CatalogError
from xaudio.backend.common.logging import get_logger
from xaudio.backend.network_handlers.session import HttpSession, NetError

log = get_logger(__name__)


def is_remote_source(source: str) -> bool:
    lowered = source.strip().lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def load_catalog(
    source: Union[str, Path],
    *,
    http: Optional[HttpSession] = None,
) -> Catalog:
    source_str = str(source)
    if is_remote_source(source_str):
        return _load_remote(source_str, http)
    return _load_file(Path(source_str).expanduser())


def _load_file(path: Path) -> Catalog:
    if not path.exists():
        raise CatalogError(f"Catalog file not found at {path}")
    try:
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, ValueError) as exc:
        raise CatalogError(f"Unable to read catalog {path}: {exc}") from exc

    catalog = Catalog.from_payload(payload)
    log.info("catalog_loaded", extra={"source": str(path), "tracks": len(catalog)})
    return catalog


def _load_remote(url: str, http: Optional[HttpSession]) -> Catalog:
    session = http or HttpSession()
    try:
        payload = session.get_json(url)
    except NetError as exc:
        raise CatalogError(f"Unable to fetch catalog from {url}: {exc}") from exc
    finally:
        if http is None:
            session.close()

    catalog = Catalog.from_payload(payload)
    log.info("catalog_loaded", extra={"source": url, "tracks": len(catalog)})
    return catalog


__all__ = ["is_remote_source", "load_catalog"]
