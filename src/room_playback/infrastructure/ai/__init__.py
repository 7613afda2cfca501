"""AI infrastructure - related-track recommendations via pydantic-ai."""

from room_playback.infrastructure.ai.related_track_client import (
    AIRelatedTrackService,
    RelatedTrackResponse,
    RelatedTrackSuggestion,
)

__all__ = [
    "AIRelatedTrackService",
    "RelatedTrackResponse",
    "RelatedTrackSuggestion",
]
