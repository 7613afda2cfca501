"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, exceptions, messages and events
- playback/: Track, queue entry, queue and autoplay history
"""

from room_playback.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
