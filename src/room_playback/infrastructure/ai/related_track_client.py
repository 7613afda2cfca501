"""Related-track recommendations for autoplay, powered by pydantic-ai."""

from __future__ import annotations

import logging
import time
from collections.abc import Set
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from room_playback.application.interfaces.recommendation_service import RecommendationService
from room_playback.config.settings import AISettings
from room_playback.domain.playback.entities import Track
from room_playback.domain.playback.value_objects import TrackId
from room_playback.domain.shared.exceptions import NoRecommendationError
from room_playback.domain.shared.messages import ErrorMessages, LogTemplates
from room_playback.domain.shared.types import NonEmptyStr, NonNegativeFloat

if TYPE_CHECKING:
    from room_playback.infrastructure.audio.ytdlp_catalog import YtDlpCatalog

logger = logging.getLogger(__name__)

SUGGESTION_CACHE_MAX_SIZE: Final[int] = 200

SYSTEM_PROMPT: Final[str] = """You are an expert music recommender picking the next song for a radio-style autoplay.

Given the song that just finished, suggest songs a listener would want to hear next:
- Same or very similar genre, tempo and energy
- Same era and mood
- Mix up the artists
- NEVER suggest the given song itself (even under a different name/version)
- Prefer specific, unambiguous search queries that will resolve on YouTube

Format each suggestion with:
- title: Song title (without artist)
- artist: Artist name
- query: Full search string optimized for YouTube (e.g., "Artist Name - Song Title")
"""


class RelatedTrackSuggestion(BaseModel):
    title: NonEmptyStr
    artist: str | None = None
    query: str = ""

    @property
    def search_query(self) -> str:
        return self.query or f"{self.artist or ''} {self.title}".strip()


class RelatedTrackResponse(BaseModel):
    """Structured output returned by the AI agent."""

    tracks: list[RelatedTrackSuggestion] = Field(default_factory=list)


class SuggestionCacheEntry(BaseModel):
    suggestions: list[RelatedTrackSuggestion]
    created_at: NonNegativeFloat = Field(default_factory=time.time)

    def is_expired(self, ttl_seconds: int) -> bool:
        return (time.time() - self.created_at) > ttl_seconds


class AIRelatedTrackService(RecommendationService):
    """Asks a language model for songs like the seed and resolves them in the catalog.

    Candidates that are in ``exclude_ids`` are passed over; when every
    resolvable candidate is excluded the first one is returned anyway.
    """

    def __init__(self, catalog: YtDlpCatalog, settings: AISettings | None = None) -> None:
        self._catalog = catalog
        self._settings = settings or AISettings()
        self._agent: Agent[None, RelatedTrackResponse] | None = None
        self._cache: dict[str, SuggestionCacheEntry] = {}

    def _build_model(self) -> Model | str:
        api_key = self._settings.api_key.get_secret_value()
        provider, _, model_name = self._settings.model.partition(":")
        if api_key and provider == "openai" and model_name:
            return OpenAIChatModel(model_name, provider=OpenAIProvider(api_key=api_key))
        # Provider credentials come from the environment.
        return self._settings.model

    def _get_agent(self) -> Agent[None, RelatedTrackResponse]:
        if self._agent is None:
            self._agent = Agent(
                self._build_model(),
                output_type=RelatedTrackResponse,
                system_prompt=SYSTEM_PROMPT,
            )
        return self._agent

    async def related_track(self, seed_id: TrackId, exclude_ids: Set[TrackId]) -> Track:
        seed = await self._catalog.lookup(seed_id)
        if seed is None:
            raise NoRecommendationError(
                str(seed_id), ErrorMessages.SEED_TRACK_UNKNOWN.format(seed_id=seed_id)
            )

        try:
            suggestions = await self._suggest(seed)
        except Exception as e:
            logger.warning(LogTemplates.AI_REQUEST_FAILED, seed.title, e)
            message = str(e) or ErrorMessages.EMPTY_API_RESPONSE
            raise NoRecommendationError(str(seed_id), message) from e

        fallback: Track | None = None
        for suggestion in suggestions:
            track = await self._catalog.resolve(suggestion.search_query)
            if track is None:
                logger.debug(LogTemplates.AI_CANDIDATE_UNRESOLVED, suggestion.search_query)
                continue
            if track.id == seed_id:
                continue
            if track.id not in exclude_ids:
                return track
            fallback = fallback or track

        if fallback is not None:
            logger.info(LogTemplates.AI_ALL_EXCLUDED, seed.title, fallback.title)
            return fallback

        raise NoRecommendationError(str(seed_id), ErrorMessages.NO_RESOLVABLE_CANDIDATE)

    async def _suggest(self, seed: Track) -> list[RelatedTrackSuggestion]:
        key = f"{seed.id}|{self._settings.candidate_count}|{self._settings.model}"
        entry = self._cache.get(key)
        if entry is not None:
            if not entry.is_expired(self._settings.cache_ttl_seconds):
                logger.debug(LogTemplates.CACHE_HIT, seed.title)
                return entry.suggestions
            del self._cache[key]

        user_prompt = (
            f"Count: {self._settings.candidate_count}\n"
            f"Title: {seed.title}\n"
            f"Artist: {seed.source_label}\n"
        )
        result = await self._get_agent().run(
            user_prompt,
            model_settings={
                "max_tokens": self._settings.max_tokens,
                "temperature": self._settings.temperature,
                "timeout": self._settings.timeout_seconds,
            },
        )
        suggestions = result.output.tracks[: self._settings.candidate_count]
        if not suggestions:
            raise NoRecommendationError(str(seed.id), ErrorMessages.EMPTY_API_RESPONSE)

        logger.debug(LogTemplates.AI_SUGGESTED, len(suggestions), seed.title)
        self._cache[key] = SuggestionCacheEntry(suggestions=suggestions)
        if len(self._cache) > SUGGESTION_CACHE_MAX_SIZE:
            self._trim_cache()
        return suggestions

    def clear_cache(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        logger.info(LogTemplates.CACHE_CLEARED, count)
        return count

    def prune_cache(self, max_age_seconds: int | None = None) -> int:
        """Drop entries older than ``max_age_seconds`` (default: the cache TTL)."""
        ttl = self._settings.cache_ttl_seconds if max_age_seconds is None else max_age_seconds
        expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(ttl)]

        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.info(LogTemplates.CACHE_EXPIRED_PRUNED, len(expired_keys))

        return len(expired_keys)

    def _trim_cache(self) -> None:
        self.prune_cache()
        overflow = len(self._cache) - SUGGESTION_CACHE_MAX_SIZE
        if overflow <= 0:
            return
        oldest = sorted(self._cache, key=lambda k: self._cache[k].created_at)[:overflow]
        for key in oldest:
            del self._cache[key]
