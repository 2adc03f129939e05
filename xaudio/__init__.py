"""xaudio: a playlist player driven by a playback state machine."""

__version__ = "0.1.0"
