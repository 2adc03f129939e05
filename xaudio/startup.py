from __future__ import annotations
import importlib.util
import sys

from xaudio.backend.catalog import load_catalog
from xaudio.backend.common.errors import XAudioError
from xaudio.backend.common.logging import get_logger, init_logging
from xaudio.backend.common.types import ComponentStatus, HealthReport
from xaudio.config.settings import Settings, get_settings



def _catalog_status(settings: Settings) -> ComponentStatus:
    try:
        load_catalog(settings.catalog_source)
    except XAudioError as exc:
        get_logger("xaudio.startup").error("catalog_unavailable", extra={"error": str(exc)})
        return "fail"
    return "ok"


def quick_self_check(settings: Settings) -> HealthReport:
    components: dict[str, ComponentStatus] = {
        "python": "ok" if sys.version_info >= (3, 10) else "degraded",
        "logging": "ok",
        "config": "ok",
        "catalog": _catalog_status(settings),
        "vlc": "ok" if importlib.util.find_spec("vlc") is not None else "degraded",
    }

    if any(v == "fail" for v in components.values()):
        status: ComponentStatus = "fail"
    elif all(v == "ok" for v in components.values()):
        status = "ok"
    else:
        status = "degraded"

    return {"status": status, "components": components}


def main() -> int:
    settings = get_settings()

    init_logging(settings.log_level)
    log = get_logger("xaudio.startup")

    log.info("boot_begin", extra={"app": settings.app_name, "env": settings.env, "log_level": settings.log_level})

    health = quick_self_check(settings)
    log.info("health_report", extra=dict(health))

    log.info("boot_ready", extra={"version": __import__("xaudio").__version__})

    return 0 if health["status"] != "fail" else 1


if __name__ == "__main__":
    raise SystemExit(main())
