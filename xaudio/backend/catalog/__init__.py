"""Fixed playlist catalog models and loaders."""

from xaudio.backend.catalog.loader import is_remote_source, load_catalog
from xaudio.backend.catalog.models import Catalog, Track

__all__ = [
    "Catalog",
    "Track",
    "is_remote_source",
    "load_catalog",
]
