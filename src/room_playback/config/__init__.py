"""Settings and dependency wiring."""

from room_playback.config.settings import (
    AISettings,
    AudioSettings,
    PlaybackSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "Settings",
    "PlaybackSettings",
    "AudioSettings",
    "AISettings",
    "get_settings",
    "clear_settings_cache",
]
