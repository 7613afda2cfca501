"""StreamSource implementation and track catalog backed by yt-dlp."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from room_playback.application.interfaces.stream_source import AudioSource, StreamSource
from room_playback.config.settings import AudioSettings
from room_playback.domain.playback.entities import Track
from room_playback.domain.playback.value_objects import TrackId
from room_playback.domain.shared.exceptions import StreamUnavailableError
from room_playback.domain.shared.messages import ErrorMessages, LogTemplates
from room_playback.infrastructure.audio.models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    DEFAULT_SEARCH_LIMIT,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

WATCH_URL: Final[str] = "https://www.youtube.com/watch?v={video_id}"
MAX_DURATION: Final[int] = 86_400

YOUTUBE_ID_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})"
)


def watch_url(track_id: TrackId) -> str:
    return WATCH_URL.format(video_id=track_id.value)


def track_id_from_info(info: YtDlpTrackInfo) -> TrackId | None:
    if info.id:
        return TrackId(info.id)
    url = info.webpage_url or info.url or ""
    match = YOUTUBE_ID_PATTERN.search(url)
    return TrackId(match.group(1)) if match else None


class YtDlpCatalog(StreamSource):
    """Resolves track ids to streams and looks tracks up by id or search query.

    Extraction results (including misses) are cached per URL for
    ``CACHE_TTL`` seconds. Blocking yt-dlp calls run in a worker thread.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format)
        self._cache: dict[str, CacheEntry] = {}

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    # ── StreamSource ───────────────────────────────────────────────────

    async def open_stream(self, track_id: TrackId) -> AudioSource:
        info = await asyncio.to_thread(self._extract_info_sync, watch_url(track_id))
        if info is None:
            raise StreamUnavailableError(
                track_id.value, ErrorMessages.TRACK_NOT_FOUND.format(track_id=track_id)
            )

        stream_url = info.stream_url
        if not stream_url:
            raise StreamUnavailableError(
                track_id.value, ErrorMessages.NO_STREAM_URL_FOR_TRACK.format(track_id=track_id)
            )

        return AudioSource(track_id=track_id, stream_url=stream_url, title=info.title)

    # ── Catalog ────────────────────────────────────────────────────────

    async def lookup(self, track_id: TrackId) -> Track | None:
        info = await asyncio.to_thread(self._extract_info_sync, watch_url(track_id))
        if info is None:
            return None
        return self._info_to_track(info, fallback_id=track_id)

    async def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[Track]:
        results = await asyncio.to_thread(self._search_sync, query, limit)

        tracks: list[Track] = []
        for info in results:
            track = self._info_to_track(info)
            if track:
                tracks.append(track)
        return tracks

    async def resolve(self, query: str) -> Track | None:
        """Return the first search hit for ``query``."""
        tracks = await self.search(query, limit=1)
        return tracks[0] if tracks else None

    def clear_cache(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        logger.debug(LogTemplates.CACHE_CLEARED, count)
        return count

    # ── Helpers ────────────────────────────────────────────────────────

    def _info_to_track(
        self, info: YtDlpTrackInfo, fallback_id: TrackId | None = None
    ) -> Track | None:
        track_id = track_id_from_info(info) or fallback_id
        if track_id is None:
            return None

        duration = min(info.duration or 0, MAX_DURATION)
        return Track(
            id=track_id,
            title=info.title[:500],
            duration_seconds=duration,
            source_label=info.source_label,
            thumbnail_ref=info.thumbnail or "",
        )

    @staticmethod
    def _parse_info(data: dict[str, Any], key: str) -> YtDlpTrackInfo | None:
        try:
            return YtDlpTrackInfo.model_validate(data)
        except ValueError as e:
            logger.warning(LogTemplates.YTDLP_INFO_INVALID, key, e)
            return None

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        now = time.time()
        cached = self._cache.get(url)
        if cached is not None:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT, url)
                return cached.info
            self._cache.pop(url, None)

        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)
        except Exception as e:
            logger.warning(LogTemplates.YTDLP_EXTRACT_FAILED, url, e)
            return None

        result = self._parse_info(dict(data), url) if isinstance(data, dict) else None
        self._cache[url] = CacheEntry(info=result, cached_at=now)
        self._prune_cache(now)
        return result

    def _search_sync(self, query: str, limit: int) -> list[YtDlpTrackInfo]:
        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(f"ytsearch{limit}:{query}", download=False)
        except Exception as e:
            logger.warning(LogTemplates.YTDLP_SEARCH_FAILED, query, e)
            return []

        if not isinstance(data, dict):
            return []

        entries = data.get("entries", [])
        if not isinstance(entries, list):
            return []

        parsed = (self._parse_info(dict(e), query) for e in entries if isinstance(e, dict))
        return [info for info in parsed if info is not None]

    def _prune_cache(self, now: float) -> None:
        if len(self._cache) <= CACHE_MAX_SIZE:
            return
        expired = [k for k, entry in self._cache.items() if now - entry.cached_at >= CACHE_TTL]
        for k in expired:
            self._cache.pop(k, None)
        if expired:
            logger.debug(LogTemplates.CACHE_EXPIRED_PRUNED, len(expired))
