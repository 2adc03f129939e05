from __future__ import annotations



class XAudioError(Exception):
    """Base for all xaudio exceptions."""


class ConfigError(XAudioError):
    """Configuration related issues."""


class TaskError(XAudioError):
    """Task scheduling/execution issues."""


class CatalogError(XAudioError):
    """Track catalog loading/validation issues."""
