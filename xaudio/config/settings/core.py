from __future__ import annotations

import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from dataclasses import dataclass

from xaudio.backend.common.logging import get_logger

from .catalog import load_user_settings, resolve_catalog_source, write_user_settings
from .paths import get_user_settings_path, get_vlc_runtime_root

log = get_logger(__name__)

_SETTINGS_LOCK = threading.Lock()
_SETTINGS_SINGLETON: Optional["Settings"] = None

DEFAULT_RETRY_DELAY_MS = 3000
DEFAULT_INITIAL_VOLUME = 0.7


@dataclass
class Settings:
    app_name: str
    env: str
    log_level: str
    retry_delay_ms: int
    initial_volume: float
    catalog_source: str
    vlc_runtime_root: str
    user_settings_path: Path

    @property
    def retry_delay_sec(self) -> float:
        return self.retry_delay_ms / 1000.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "env": self.env,
            "log_level": self.log_level,
            "retry_delay_ms": self.retry_delay_ms,
            "initial_volume": self.initial_volume,
            "catalog_source": self.catalog_source,
            "vlc_runtime_root": self.vlc_runtime_root,
            "user_settings_path": str(self.user_settings_path),
        }


def _coerce_int(raw: Any, default: int, *, minimum: int = 0) -> int:
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def _coerce_volume(raw: Any, default: float) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if value != value:  # NaN
        return default
    return max(0.0, min(1.0, value))


def _build_settings() -> Settings:
    user_cfg = load_user_settings()
    app_name = os.getenv("XAUDIO_APP_NAME", user_cfg.get("app_name", "xaudio"))
    env = os.getenv("XAUDIO_ENV", user_cfg.get("env", "development"))
    log_level = str(os.getenv("XAUDIO_LOG_LEVEL", user_cfg.get("log_level", "INFO"))).upper()

    retry_raw = os.getenv("XAUDIO_RETRY_DELAY_MS") or user_cfg.get("retry_delay_ms", DEFAULT_RETRY_DELAY_MS)
    retry_delay_ms = _coerce_int(retry_raw, DEFAULT_RETRY_DELAY_MS)

    volume_raw = os.getenv("XAUDIO_INITIAL_VOLUME") or user_cfg.get("initial_volume", DEFAULT_INITIAL_VOLUME)
    initial_volume = _coerce_volume(volume_raw, DEFAULT_INITIAL_VOLUME)

    catalog_source = resolve_catalog_source(os.getenv("XAUDIO_CATALOG") or user_cfg.get("catalog_source"))

    return Settings(
        app_name=app_name,
        env=env,
        log_level=log_level,
        retry_delay_ms=retry_delay_ms,
        initial_volume=initial_volume,
        catalog_source=catalog_source,
        vlc_runtime_root=get_vlc_runtime_root(),
        user_settings_path=get_user_settings_path(),
    )


def get_settings(*, reload: bool = False) -> Settings:
    global _SETTINGS_SINGLETON
    with _SETTINGS_LOCK:
        if _SETTINGS_SINGLETON is None or reload:
            _SETTINGS_SINGLETON = _build_settings()

        return _SETTINGS_SINGLETON


def update_catalog_source(source: str) -> Settings:
    current = get_settings()

    payload = load_user_settings()
    payload["catalog_source"] = resolve_catalog_source(source)
    payload["app_name"] = current.app_name
    payload["env"] = current.env
    payload["log_level"] = current.log_level
    payload["retry_delay_ms"] = current.retry_delay_ms
    payload["initial_volume"] = current.initial_volume
    payload["updated_at"] = datetime.now(timezone.utc).isoformat()
    write_user_settings(payload)
    log.info("settings_catalog_updated", extra={"catalog_source": payload["catalog_source"]})

    return get_settings(reload=True)


__all__ = [
    "DEFAULT_INITIAL_VOLUME",
    "DEFAULT_RETRY_DELAY_MS",
    "Settings",
    "get_settings",
    "update_catalog_source",
]
