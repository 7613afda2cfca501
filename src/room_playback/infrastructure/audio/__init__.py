"""Audio infrastructure - yt-dlp catalog and stream source."""

from room_playback.infrastructure.audio.models import (
    AudioFormatInfo,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)
from room_playback.infrastructure.audio.ytdlp_catalog import YtDlpCatalog

__all__ = [
    "AudioFormatInfo",
    "CacheEntry",
    "YtDlpCatalog",
    "YtDlpOpts",
    "YtDlpTrackInfo",
]
