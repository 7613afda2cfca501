"""
Recommendation Service Interface

Port interface for related-track lookups used by autoplay.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Set
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.playback.entities import Track
    from ...domain.playback.value_objects import TrackId


class RecommendationService(ABC):
    """Abstract interface for related-track recommendations.

    Exclusions are best-effort: an implementation may return an excluded
    track when it has no alternative.
    """

    @abstractmethod
    async def related_track(self, seed_id: TrackId, exclude_ids: Set[TrackId]) -> Track:
        """Find a track related to ``seed_id``.

        Args:
            seed_id: The track that just finished.
            exclude_ids: Tracks that should not be recommended.

        Returns:
            The recommended track.

        Raises:
            NoRecommendationError: Nothing could be recommended.
        """
        ...
