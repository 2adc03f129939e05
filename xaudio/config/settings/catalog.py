from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .paths import expand_env_in_str, get_default_catalog_path, get_user_settings_path

_REMOTE_PREFIXES = ("http://", "https://")


def coerce_path(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    path = Path(value).expanduser()
    try:
        return str(path.resolve())
    except Exception:
        return str(path)


def ensure_parent(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass


def load_user_settings() -> Dict[str, Any]:
    user_path = get_user_settings_path()
    if not user_path.exists():
        return {}
    try:
        with user_path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def write_user_settings(payload: Mapping[str, Any]) -> None:
    user_path = get_user_settings_path()
    ensure_parent(user_path)
    with user_path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False, sort_keys=True)


def resolve_catalog_source(value: Optional[str]) -> str:
    """Normalise a catalog location; URLs pass through, paths are resolved."""
    if not value or not str(value).strip():
        return str(get_default_catalog_path())
    expanded = expand_env_in_str(str(value).strip())
    if expanded.lower().startswith(_REMOTE_PREFIXES):
        return expanded
    return coerce_path(expanded) or str(get_default_catalog_path())


__all__ = [
    "coerce_path",
    "ensure_parent",
    "load_user_settings",
    "resolve_catalog_source",
    "write_user_settings",
]
