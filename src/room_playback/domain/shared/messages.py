"""Centralized message constants for error messages, validation, and log output."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    EMPTY_TRACK_ID = "Track ID cannot be empty"

    # Queue / History Validation Errors
    INVALID_PAGE_SIZE = "Page size must be at least 1"
    INVALID_HISTORY_SIZE = "Autoplay history size must be at least 1"

    # Stream Errors
    INVALID_STREAM_OUTCOME = "A stream outcome carries exactly one of reason or error"
    NO_STREAM_URL_FOR_TRACK = "No stream URL found for {track_id}"
    TRACK_NOT_FOUND = "No track found for {track_id}"
    VOICE_CHANNEL_NOT_FOUND = "Voice channel {channel_id} not found"
    VOICE_CONNECT_TIMEOUT = "Timed out connecting to voice channel {channel_id}"
    VOICE_NO_PERMISSION = "No permission to connect to voice channel {channel_id}"

    # Recommendation Errors
    SEED_TRACK_UNKNOWN = "Seed track {seed_id} could not be looked up"
    NO_RESOLVABLE_CANDIDATE = "None of the suggested tracks could be resolved"
    EMPTY_API_RESPONSE = "Empty response from API"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Configuration Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Room Lifecycle
    ROOM_CREATED = "Created room %s"
    ROOM_DROPPED = "Dropped room %s (%s)"
    ROOM_DROP_UNKNOWN = "Ignoring drop for unknown room %s"
    ROOM_CLOSED = "Closed room %s"
    ROOM_DISCONNECTED = "Disconnected room %s from voice"
    ROOM_STATE_CHANGED = "Room %s state %s -> %s"
    ROOM_PENDING_LEAVE = "Room %s has nothing to play, leaving in %.1fs"
    ROOM_IDLE_TIMEOUT = "Room %s idle timeout elapsed"
    ROOMS_DISCONNECTED_ALL = "Disconnected %d rooms"
    ROOMS_CLOSED_ALL = "Closed %d rooms"
    DROP_ROOM_FAILED = "Failed to drop room %s"
    DISCONNECT_FAILED = "Error disconnecting room %s"
    ROOM_CLOSE_FAILED = "Error closing room %s"

    # Idle Timer
    IDLE_TIMER_CALLBACK_ERROR = "Idle timer callback failed"
    IDLE_TIMER_STALE = "Ignoring stale idle timeout for room %s"

    # Playback
    TRACK_STARTED = "Started playing '%s' in room %s (requested by %s)"
    TRACK_FINISHED = "Finished '%s' in room %s (%s)"
    TRACK_ERRORED = "Track '%s' failed in room %s: %s"
    STREAM_OPEN_FAILED = "Could not open stream for '%s' in room %s: %s"
    STREAM_STOP_FAILED = "Error stopping stream in room %s: %r"
    JOIN_FAILED = "Could not join channel %s for room %s: %s"
    ADVANCE_DETACHED = "Room %s lost its voice connection; next entry kept at queue head"
    START_DETACHED = "Room %s lost its voice connection before %s could start"
    OUTCOME_IGNORED_NOT_PLAYING = "Ignoring stream outcome for room %s: nothing is playing"
    OUTCOME_IGNORED_STALE = "Ignoring stale stream outcome for room %s"
    PLAY_FALLBACK_ENQUEUE = "Room %s is already streaming, enqueuing '%s'"
    PLAY_REJECTED_CLOSED = "Rejected play for closed room %s"

    # Queue / Controls
    QUEUE_ENQUEUED = "Enqueued '%s' at position %d in room %s"
    SKIP_REQUESTED = "Skipping '%s' in room %s"
    SKIP_IGNORED = "Skip ignored for room %s in state %s"
    VOLUME_CHANGED = "Volume set to %.2f in room %s"
    VOLUME_APPLY_FAILED = "Could not apply volume to live stream in room %s: %r"

    # Autoplay
    AUTOPLAY_TOGGLED = "Autoplay %s for room %s"
    AUTOPLAY_PICKED = "Autoplay picked '%s' (seed %s) for room %s"
    AUTOPLAY_EXHAUSTED = "Autoplay found nothing for room %s: %s"
    AUTOPLAY_LOOKUP_FAILED = "Autoplay lookup for seed %s failed in room %s"
    AUTOPLAY_DISABLED_DURING_LOOKUP = "Autoplay was disabled during lookup for room %s"
    AUTOPLAY_DISCARDED = "Discarding autoplay pick for room %s: queue is no longer empty"

    # Notifications
    NOTIFICATION_FAILED = "Notification for room %s failed: %r"

    # Voice Transport
    VOICE_CONNECTED = "Connected to voice channel %s in room %s"
    VOICE_MOVED = "Moved to voice channel %s in room %s"
    VOICE_DISCONNECTED = "Disconnected from voice in room %s"
    VOICE_STALE_CLEANUP = "Found stale voice client in room %s, cleaning up"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in room %s: %r"
    VOICE_PLAYER_ERROR = "Voice player reported an error for '%s': %r"

    # Catalog / yt-dlp
    CACHE_HIT = "Cache hit for '%s'"
    CACHE_EXPIRED_PRUNED = "Pruned %d expired cache entries"
    CACHE_CLEARED = "Cleared %d cache entries"
    YTDLP_EXTRACT_FAILED = "yt-dlp extraction failed for %s: %s"
    YTDLP_SEARCH_FAILED = "yt-dlp search failed for '%s': %s"
    YTDLP_INFO_INVALID = "Discarding malformed yt-dlp info for %s: %s"

    # AI Recommendations
    AI_REQUEST_FAILED = "AI recommendation request for '%s' failed: %r"
    AI_SUGGESTED = "AI suggested %d candidates for '%s'"
    AI_CANDIDATE_UNRESOLVED = "Could not resolve suggested track '%s'"
    AI_ALL_EXCLUDED = "All candidates for '%s' were recently played, using '%s'"

    # Application Lifecycle
    LOGGING_CONFIG_FALLBACK = "Logging config %s unavailable, using basic configuration"
    CONTAINER_SHUTDOWN = "Container shut down"
