"""
Unit Tests for AIRelatedTrackService

The pydantic-ai agent and the catalog are replaced with mocks; no model
requests are made.
"""

import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr
from pydantic_ai.models.openai import OpenAIChatModel

from room_playback.config.settings import AISettings
from room_playback.domain.playback.entities import Track
from room_playback.domain.playback.value_objects import TrackId
from room_playback.domain.shared.exceptions import NoRecommendationError
from room_playback.infrastructure.ai.related_track_client import (
    SUGGESTION_CACHE_MAX_SIZE,
    AIRelatedTrackService,
    RelatedTrackResponse,
    RelatedTrackSuggestion,
    SuggestionCacheEntry,
)

SEED = Track(id=TrackId("seed"), title="Seed Song", source_label="Seed Artist")


def _track(value: str) -> Track:
    return Track(id=TrackId(value), title=f"Song {value}")


def _suggestions(*queries: str) -> RelatedTrackResponse:
    return RelatedTrackResponse(
        tracks=[RelatedTrackSuggestion(title=q, query=q) for q in queries]
    )


@pytest.fixture
def catalog():
    catalog = MagicMock()
    catalog.lookup = AsyncMock(return_value=SEED)
    catalog.resolve = AsyncMock(side_effect=lambda query: _track(query))
    return catalog


@pytest.fixture
def agent():
    agent = MagicMock()
    agent.run = AsyncMock(return_value=MagicMock(output=_suggestions("a", "b", "c")))
    return agent


@pytest.fixture
def service(catalog, agent):
    service = AIRelatedTrackService(catalog, AISettings(candidate_count=3))
    service._agent = agent
    return service


class TestRelatedTrack:
    """Tests for picking a related track."""

    async def test_returns_first_candidate(self, service, catalog):
        track = await service.related_track(SEED.id, frozenset())

        assert track.id == TrackId("a")
        catalog.lookup.assert_awaited_once_with(SEED.id)

    async def test_skips_excluded_candidates(self, service):
        track = await service.related_track(SEED.id, {TrackId("a"), TrackId("b")})

        assert track.id == TrackId("c")

    async def test_all_excluded_falls_back_to_first(self, service):
        """With every candidate excluded the first resolvable one is returned."""
        excluded = {TrackId("a"), TrackId("b"), TrackId("c")}

        track = await service.related_track(SEED.id, excluded)

        assert track.id == TrackId("a")

    async def test_never_returns_the_seed(self, service, agent):
        agent.run.return_value = MagicMock(output=_suggestions("seed", "b"))

        track = await service.related_track(SEED.id, frozenset())

        assert track.id == TrackId("b")

    async def test_unresolvable_candidates_are_skipped(self, service, catalog):
        catalog.resolve.side_effect = lambda query: None if query == "a" else _track(query)

        track = await service.related_track(SEED.id, frozenset())

        assert track.id == TrackId("b")

    async def test_nothing_resolvable(self, service, catalog):
        catalog.resolve.side_effect = None
        catalog.resolve.return_value = None

        with pytest.raises(NoRecommendationError, match="could be resolved"):
            await service.related_track(SEED.id, frozenset())

    async def test_unknown_seed(self, service, catalog, agent):
        catalog.lookup.return_value = None

        with pytest.raises(NoRecommendationError) as exc_info:
            await service.related_track(SEED.id, frozenset())

        assert exc_info.value.seed_id == "seed"
        agent.run.assert_not_awaited()

    async def test_agent_failure_is_no_recommendation(self, service, agent):
        agent.run.side_effect = RuntimeError("rate limited")

        with pytest.raises(NoRecommendationError, match="rate limited"):
            await service.related_track(SEED.id, frozenset())

    async def test_empty_response(self, service, agent):
        agent.run.return_value = MagicMock(output=RelatedTrackResponse())

        with pytest.raises(NoRecommendationError, match="Empty response"):
            await service.related_track(SEED.id, frozenset())


class TestSuggestionCache:
    """Tests for the per-seed suggestion cache."""

    async def test_suggestions_are_cached(self, service, agent):
        await service.related_track(SEED.id, frozenset())
        await service.related_track(SEED.id, {TrackId("a")})

        assert agent.run.await_count == 1

    async def test_candidate_count_limits_suggestions(self, service, agent):
        agent.run.return_value = MagicMock(output=_suggestions("a", "b", "c", "d", "e"))

        suggestions = await service._suggest(SEED)

        assert [s.search_query for s in suggestions] == ["a", "b", "c"]

    async def test_clear_cache(self, service):
        await service.related_track(SEED.id, frozenset())

        assert service.clear_cache() == 1

    def test_prune_removes_expired_entries(self, service):
        suggestion = RelatedTrackSuggestion(title="x")
        service._cache["old"] = SuggestionCacheEntry(suggestions=[suggestion], created_at=0.0)
        service._cache["new"] = SuggestionCacheEntry(suggestions=[suggestion])

        assert service.prune_cache() == 1
        assert list(service._cache) == ["new"]

    async def test_cache_size_is_capped(self, service):
        """The cache should never grow past its size limit."""
        suggestion = RelatedTrackSuggestion(title="x")
        start = time.time() - SUGGESTION_CACHE_MAX_SIZE
        for i in range(SUGGESTION_CACHE_MAX_SIZE):
            service._cache[f"seed-{i}"] = SuggestionCacheEntry(
                suggestions=[suggestion], created_at=start + i
            )

        await service.related_track(SEED.id, frozenset())

        assert len(service._cache) == SUGGESTION_CACHE_MAX_SIZE
        assert "seed-0" not in service._cache


class TestModelSelection:
    def test_model_string_without_api_key(self, catalog):
        service = AIRelatedTrackService(catalog, AISettings(model="openai:gpt-4o-mini"))

        assert service._build_model() == "openai:gpt-4o-mini"

    def test_openai_model_with_api_key(self, catalog):
        settings = AISettings(api_key=SecretStr("sk-test"), model="openai:gpt-4o-mini")

        model = AIRelatedTrackService(catalog, settings)._build_model()

        assert isinstance(model, OpenAIChatModel)
        assert model.model_name == "gpt-4o-mini"

    def test_search_query_fallback(self):
        suggestion = RelatedTrackSuggestion(title="Song", artist="Artist")

        assert suggestion.search_query == "Artist Song"
