"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class RoomClosedError(DomainError):
    """Raised when a command reaches a room that is being dropped."""

    def __init__(self, room_id: int, message: str | None = None) -> None:
        msg = message or f"Room {room_id} is closed"
        super().__init__(msg, code="ROOM_CLOSED")
        self.room_id = room_id


# === Collaborator failures ===


class PlaybackError(DomainError):
    """Base class for failures reported by playback collaborators."""


class StreamUnavailableError(PlaybackError):
    """Raised when a track cannot be opened as an audio stream."""

    def __init__(self, track_id: str, message: str | None = None) -> None:
        msg = message or f"Track '{track_id}' could not be opened"
        super().__init__(msg, code="STREAM_UNAVAILABLE")
        self.track_id = track_id


class JoinFailedError(PlaybackError):
    """Raised when the voice transport cannot join a channel."""

    def __init__(self, channel_id: int, message: str | None = None) -> None:
        msg = message or f"Could not join voice channel {channel_id}"
        super().__init__(msg, code="JOIN_FAILED")
        self.channel_id = channel_id


class NoRecommendationError(PlaybackError):
    """Raised when no related track can be found for a seed."""

    def __init__(self, seed_id: str, message: str | None = None) -> None:
        msg = message or f"No recommendation available for '{seed_id}'"
        super().__init__(msg, code="NO_RECOMMENDATION")
        self.seed_id = seed_id


class StreamRuntimeError(PlaybackError):
    """Raised (or carried) when a stream fails mid-playback."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, code="STREAM_RUNTIME_ERROR")
        self.cause = cause
