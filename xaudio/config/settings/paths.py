from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from xaudio.backend.common.errors import ConfigError

_CONFIG_DIR = Path(__file__).resolve().parent.parent
_PACKAGE_ROOT = _CONFIG_DIR.parent
_PATH_BASES = [_PACKAGE_ROOT, *_PACKAGE_ROOT.parents]

load_dotenv(_PACKAGE_ROOT / ".env")

_DEFAULT_CONFIG_PATHS = {
    "default_catalog": str(_CONFIG_DIR / "playlist.json"),
    "user_settings": str(_PACKAGE_ROOT / "var" / "user_settings.json"),
    "vlc_runtime_root": str(_PACKAGE_ROOT / "Resources" / "vlc"),
}

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def expand_env_in_str(value: str) -> str:
    """Expand ``${VAR}`` tokens within a string."""

    def _repl(match: re.Match[str]) -> str:
        var = match.group(1)
        return os.getenv(var, "")

    return _ENV_PATTERN.sub(_repl, value)


def expand_env(obj: Any) -> Any:
    """Recursively expand environment variables in nested structures."""
    if isinstance(obj, str):
        return expand_env_in_str(obj)
    if isinstance(obj, list):
        return [expand_env(v) for v in obj]
    if isinstance(obj, dict):
        return {k: expand_env(v) for k, v in obj.items()}

    return obj


def read_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _resolve_candidate(value: str) -> str:
    candidate = Path(expand_env_in_str(value)).expanduser()
    if candidate.is_absolute():
        return str(candidate.resolve())

    for base in _PATH_BASES:
        resolved = (base / candidate).resolve()
        if resolved.exists() or resolved.parent.exists():
            return str(resolved)

    return str((_PACKAGE_ROOT / candidate).resolve())


def load_config_paths(cfg_path: Optional[Path] = None) -> Dict[str, str]:
    cfg_path = cfg_path or _CONFIG_DIR / "config_paths.json"
    if not cfg_path.exists():
        return {k: str(Path(v).resolve()) for k, v in _DEFAULT_CONFIG_PATHS.items()}

    try:
        raw = read_json(cfg_path)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Unable to read {cfg_path}: {exc}") from exc
    if raw is not None and not isinstance(raw, dict):
        raise ConfigError(f"{cfg_path} must contain a JSON object")
    merged = {**_DEFAULT_CONFIG_PATHS, **(raw or {})}

    for key, value in list(merged.items()):
        merged[key] = _resolve_candidate(value)

    return merged


PATHS: Dict[str, str] = load_config_paths()


def get_default_catalog_path() -> Path:
    return Path(PATHS["default_catalog"])


def get_user_settings_path() -> Path:
    override = os.getenv("XAUDIO_USER_SETTINGS")
    if override:
        return Path(override).expanduser()
    return Path(PATHS["user_settings"])


def get_vlc_runtime_root() -> str:
    return os.getenv("XAUDIO_VLC_ROOT") or PATHS["vlc_runtime_root"]


__all__ = [
    "PATHS",
    "expand_env",
    "expand_env_in_str",
    "get_default_catalog_path",
    "get_user_settings_path",
    "get_vlc_runtime_root",
    "load_config_paths",
    "read_json",
]
