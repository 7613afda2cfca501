"""
Unit Tests for YtDlpCatalog

Tests for the yt-dlp based stream source and catalog:
- Info dict parsing and Track conversion
- open_stream success and failure modes
- lookup / search / resolve
- Per-URL caching (including misses)

yt-dlp itself is replaced with a MagicMock; no network access happens.
"""

import time
from unittest.mock import MagicMock, patch

import pytest

from room_playback.config.settings import AudioSettings
from room_playback.domain.playback.value_objects import TrackId
from room_playback.domain.shared.exceptions import StreamUnavailableError
from room_playback.infrastructure.audio.models import CACHE_TTL, CacheEntry, YtDlpTrackInfo
from room_playback.infrastructure.audio.ytdlp_catalog import (
    YtDlpCatalog,
    track_id_from_info,
    watch_url,
)

YTDL_PATH = "room_playback.infrastructure.audio.ytdlp_catalog.YoutubeDL"

VIDEO_ID = "dQw4w9WgXcQ"
INFO = {
    "id": VIDEO_ID,
    "webpage_url": f"https://www.youtube.com/watch?v={VIDEO_ID}",
    "url": "https://example.com/stream.m4a",
    "title": "Test Song",
    "duration": 212,
    "uploader": "Test Channel",
    "thumbnail": "https://example.com/thumb.jpg",
    "view_count": 123,
}


def _ydl_returning(result=None, error: Exception | None = None) -> MagicMock:
    """Build a YoutubeDL class mock whose context manager extracts ``result``."""
    ydl = MagicMock()
    if error is not None:
        ydl.extract_info.side_effect = error
    else:
        ydl.extract_info.return_value = result
    ydl_cls = MagicMock()
    ydl_cls.return_value.__enter__.return_value = ydl
    return ydl_cls


@pytest.fixture
def catalog():
    return YtDlpCatalog(AudioSettings())


# =============================================================================
# Parsing
# =============================================================================


class TestInfoParsing:
    """Tests for YtDlpTrackInfo coercion and Track conversion."""

    def test_garbage_fields_are_coerced(self):
        info = YtDlpTrackInfo.model_validate({"title": "  ", "duration": "abc", "uploader": ""})

        assert info.title == "Unknown Title"
        assert info.duration is None
        assert info.uploader is None

    def test_stream_url_falls_back_to_audio_formats(self):
        info = YtDlpTrackInfo.model_validate(
            {
                "formats": [
                    {"url": "https://example.com/video", "acodec": "none"},
                    {"url": "https://example.com/low", "acodec": "opus"},
                    {"url": "https://example.com/high", "acodec": "opus"},
                ]
            }
        )

        assert info.stream_url == "https://example.com/high"

    def test_track_id_from_url(self):
        info = YtDlpTrackInfo(webpage_url=f"https://youtu.be/{VIDEO_ID}")

        assert track_id_from_info(info) == TrackId(VIDEO_ID)

    def test_track_id_missing(self):
        assert track_id_from_info(YtDlpTrackInfo(url="https://example.com/a.mp3")) is None

    def test_info_to_track(self, catalog):
        track = catalog._info_to_track(YtDlpTrackInfo.model_validate(INFO))

        assert track.id == TrackId(VIDEO_ID)
        assert track.title == "Test Song"
        assert track.duration_seconds == 212
        assert track.source_label == "Test Channel"
        assert track.thumbnail_ref == "https://example.com/thumb.jpg"

    def test_info_to_track_caps_duration(self, catalog):
        info = YtDlpTrackInfo.model_validate({**INFO, "duration": 200_000})

        assert catalog._info_to_track(info).duration_seconds == 86_400

    def test_watch_url(self):
        assert watch_url(TrackId(VIDEO_ID)).endswith(f"v={VIDEO_ID}")


# =============================================================================
# StreamSource
# =============================================================================


class TestOpenStream:
    """Tests for YtDlpCatalog.open_stream."""

    async def test_returns_audio_source(self, catalog):
        with patch(YTDL_PATH, _ydl_returning(INFO)):
            source = await catalog.open_stream(TrackId(VIDEO_ID))

        assert source.track_id == TrackId(VIDEO_ID)
        assert source.stream_url == "https://example.com/stream.m4a"
        assert source.title == "Test Song"

    async def test_extraction_error_is_unavailable(self, catalog):
        """yt-dlp failures should surface as StreamUnavailableError."""
        with patch(YTDL_PATH, _ydl_returning(error=RuntimeError("Video unavailable"))):
            with pytest.raises(StreamUnavailableError) as exc_info:
                await catalog.open_stream(TrackId(VIDEO_ID))

        assert exc_info.value.track_id == VIDEO_ID

    async def test_missing_stream_url(self, catalog):
        info = {k: v for k, v in INFO.items() if k != "url"}

        with patch(YTDL_PATH, _ydl_returning(info)):
            with pytest.raises(StreamUnavailableError, match="No stream URL"):
                await catalog.open_stream(TrackId(VIDEO_ID))


# =============================================================================
# Catalog
# =============================================================================


class TestCatalogQueries:
    """Tests for lookup, search and resolve."""

    async def test_lookup(self, catalog):
        with patch(YTDL_PATH, _ydl_returning(INFO)):
            track = await catalog.lookup(TrackId(VIDEO_ID))

        assert track.title == "Test Song"

    async def test_lookup_uses_requested_id_when_info_has_none(self, catalog):
        info = {"title": "Anonymous", "url": "https://example.com/a.m4a"}

        with patch(YTDL_PATH, _ydl_returning(info)):
            track = await catalog.lookup(TrackId("fallback-id"))

        assert track.id == TrackId("fallback-id")

    async def test_lookup_miss(self, catalog):
        with patch(YTDL_PATH, _ydl_returning(error=RuntimeError("gone"))):
            assert await catalog.lookup(TrackId(VIDEO_ID)) is None

    async def test_search_builds_ytsearch_query(self, catalog):
        ydl_cls = _ydl_returning(
            {"entries": [INFO, {**INFO, "id": "second00001", "title": "Second"}, "junk"]}
        )

        with patch(YTDL_PATH, ydl_cls):
            tracks = await catalog.search("never gonna", limit=3)

        ydl = ydl_cls.return_value.__enter__.return_value
        ydl.extract_info.assert_called_once_with("ytsearch3:never gonna", download=False)
        assert [t.title for t in tracks] == ["Test Song", "Second"]

    async def test_search_failure_returns_empty(self, catalog):
        with patch(YTDL_PATH, _ydl_returning(error=RuntimeError("rate limited"))):
            assert await catalog.search("anything") == []

    async def test_resolve_returns_first_hit(self, catalog):
        with patch(YTDL_PATH, _ydl_returning({"entries": [INFO]})):
            track = await catalog.resolve("test song")

        assert track.id == TrackId(VIDEO_ID)

    async def test_resolve_no_hits(self, catalog):
        with patch(YTDL_PATH, _ydl_returning({"entries": []})):
            assert await catalog.resolve("nothing") is None


# =============================================================================
# Caching
# =============================================================================


class TestCaching:
    """Tests for the per-URL extraction cache."""

    def test_second_extraction_hits_cache(self, catalog):
        ydl_cls = _ydl_returning(INFO)
        url = watch_url(TrackId(VIDEO_ID))

        with patch(YTDL_PATH, ydl_cls):
            first = catalog._extract_info_sync(url)
            second = catalog._extract_info_sync(url)

        assert first == second
        assert ydl_cls.call_count == 1

    def test_misses_are_cached(self, catalog):
        ydl_cls = _ydl_returning({"not": "a track", "webpage_url": "ftp://bad"})
        url = watch_url(TrackId(VIDEO_ID))

        with patch(YTDL_PATH, ydl_cls):
            assert catalog._extract_info_sync(url) is None
            assert catalog._extract_info_sync(url) is None

        assert ydl_cls.call_count == 1

    def test_expired_entry_is_refetched(self, catalog):
        url = watch_url(TrackId(VIDEO_ID))
        catalog._cache[url] = CacheEntry(info=None, cached_at=time.time() - CACHE_TTL - 1)

        with patch(YTDL_PATH, _ydl_returning(INFO)):
            info = catalog._extract_info_sync(url)

        assert info is not None
        assert info.title == "Test Song"

    def test_clear_cache(self, catalog):
        catalog._cache["a"] = CacheEntry(info=None, cached_at=time.time())

        assert catalog.clear_cache() == 1
        assert catalog._cache == {}
