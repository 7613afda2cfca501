"""Per-room media queue playback: queue, autoplay and idle lifecycle."""

__version__ = "0.1.0"
