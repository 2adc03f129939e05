from __future__ import annotations

"""Exceptions for the player subsystem."""

from xaudio.backend.common.errors import XAudioError


class PlayerError(XAudioError):
    """Top-level error raised by the player subsystem."""


class ResourceError(PlayerError):
    """Raised when an audio resource refuses an operation (e.g. play before it is ready)."""
