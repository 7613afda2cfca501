"""
Shared Domain Kernel

Contains types and exceptions shared across the domain.
"""

from room_playback.domain.shared.exceptions import (
    DomainError,
    InvalidOperationError,
    JoinFailedError,
    NoRecommendationError,
    PlaybackError,
    RoomClosedError,
    StreamRuntimeError,
    StreamUnavailableError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "InvalidOperationError",
    "PlaybackError",
    "StreamUnavailableError",
    "JoinFailedError",
    "NoRecommendationError",
    "StreamRuntimeError",
    "RoomClosedError",
]
